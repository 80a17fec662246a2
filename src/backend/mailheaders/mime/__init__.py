"""
MIME helpers: identifier generation and line oriented stream wrappers.
"""

from .identifiers import (
    IdentifierGenerationError,
    IdentityProvider,
    gen_content_id,
    gen_message_id,
    generate_id,
    random_boundary,
)
from .streams import (
    MAX_BASE64_LINE_LENGTH,
    MAX_HEADER_LINE_LENGTH,
    MAX_HEADER_TOTAL_LENGTH,
    Base64LineWriter,
    HeaderLineWriter,
    LeftTrimReader,
    StreamWriteError,
    buffered_reader,
)

__all__ = [
    # Identifiers
    "generate_id",
    "gen_message_id",
    "gen_content_id",
    "random_boundary",
    "IdentityProvider",
    "IdentifierGenerationError",
    # Streams
    "HeaderLineWriter",
    "Base64LineWriter",
    "LeftTrimReader",
    "buffered_reader",
    "StreamWriteError",
    "MAX_HEADER_LINE_LENGTH",
    "MAX_HEADER_TOTAL_LENGTH",
    "MAX_BASE64_LINE_LENGTH",
]
