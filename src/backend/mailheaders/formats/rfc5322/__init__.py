"""
RFC5322 header format package.

This package provides the header model and its serialization according to
RFC5322 and RFC2047.
"""

from .composer import (
    MAX_ENCODED_WORD_LENGTH,
    encode_display_name,
    encode_text,
    format_address,
    header_to_bytes,
    write_header,
)
from .header import (
    Header,
    MissingFieldError,
    canonical_field_name,
    format_rfc822_date,
    new_header,
)
from .parser import (
    Address,
    HeaderParseError,
    parse_address_list,
    parse_date,
    parse_media_type,
)

__all__ = [
    # Header model
    "Header",
    "new_header",
    "canonical_field_name",
    "format_rfc822_date",
    "MissingFieldError",
    # Parser functions
    "Address",
    "parse_address_list",
    "parse_date",
    "parse_media_type",
    "HeaderParseError",
    # Composer functions
    "encode_text",
    "encode_display_name",
    "format_address",
    "write_header",
    "header_to_bytes",
    "MAX_ENCODED_WORD_LENGTH",
]
