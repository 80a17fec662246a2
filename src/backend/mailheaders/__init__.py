"""Mail headers: RFC5322 header building and serialization for outgoing messages."""
