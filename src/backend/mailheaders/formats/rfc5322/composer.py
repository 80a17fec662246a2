"""
RFC5322 header composer.

This module turns a Header into its wire representation. Fields are written
in sorted canonical name order, one line per value, through a
HeaderLineWriter so long lines are folded. Address lists are rewritten
mailbox by mailbox, anything else is written as text. Non-ASCII text becomes
RFC 2047 "B" encoded words in UTF-8. Bcc is never written out.
"""

import base64
import io
import logging
import re
from typing import BinaryIO, Iterator, List, Optional

from django.conf import settings

from mailheaders.mime.streams import (
    MAX_HEADER_TOTAL_LENGTH,
    HeaderLineWriter,
    StreamWriteError,
)

from .parser import Address, HeaderParseError, parse_address_list

logger = logging.getLogger(__name__)

MAX_ENCODED_WORD_LENGTH = 75
ENCODED_WORD_PREFIX = "=?UTF-8?B?"
ENCODED_WORD_SUFFIX = "?="
# Largest number of UTF-8 bytes whose base64 form fits in one encoded word
MAX_ENCODED_WORD_BYTES = (
    (MAX_ENCODED_WORD_LENGTH - len(ENCODED_WORD_PREFIX) - len(ENCODED_WORD_SUFFIX))
    // 4
    * 3
)

ADDRESS_SPECIALS = ',.;:@<>()[]"\\'

# Fields holding msg-id values: "<id@host>" must not be read as a mailbox
MESSAGE_ID_FIELDS = frozenset(
    ["Message-Id", "Content-Id", "In-Reply-To", "References", "Resent-Message-Id"]
)

# RFC 5322 ftext: printable ASCII except the colon
FIELD_NAME_RE = re.compile(r"[!-9;-~]+")


def needs_encoding(value: str) -> bool:
    """Tell whether ``value`` has characters outside printable ASCII and tab."""
    return any((c < " " or c > "~") and c != "\t" for c in value)


def _encoded_word(text: str) -> str:
    encoded = base64.b64encode(text.encode("utf-8")).decode("ascii")
    return f"{ENCODED_WORD_PREFIX}{encoded}{ENCODED_WORD_SUFFIX}"


def encode_text(value: str) -> str:
    """
    Encode header text using MIME B encoding with the UTF-8 charset.

    Printable ASCII is returned unchanged. Anything else becomes one or more
    space separated encoded words of at most 75 characters each; a character
    is never split between two words.

    Examples:
        >>> encode_text("Hello")
        'Hello'
        >>> encode_text("Café")
        '=?UTF-8?B?Q2Fmw6k=?='
    """
    if not needs_encoding(value):
        return value

    words = []
    chunk = []
    size = 0
    for char in value:
        char_size = len(char.encode("utf-8"))
        if chunk and size + char_size > MAX_ENCODED_WORD_BYTES:
            words.append(_encoded_word("".join(chunk)))
            chunk, size = [], 0
        chunk.append(char)
        size += char_size
    words.append(_encoded_word("".join(chunk)))
    return " ".join(words)


def encode_display_name(name: str) -> str:
    """Encode a display name, quoting ASCII names that contain specials."""
    if not name or needs_encoding(name):
        return encode_text(name)

    needs_quoting = any(c in name for c in ADDRESS_SPECIALS)
    quoted = len(name) > 1 and name.startswith('"') and name.endswith('"')
    if needs_quoting and not quoted:
        # Quote the name and escape backslashes and quotes inside it
        name = '"' + name.replace("\\", "\\\\").replace('"', '\\"') + '"'
    return name


def _address_chunks(mailbox: Address) -> List[str]:
    """Return the display name and mailbox parts, written separately."""
    name = encode_display_name(mailbox.name)
    addr = mailbox.address
    if name:
        addr = f" <{addr}>"
    encoded = encode_text(addr)
    if encoded != addr and needs_encoding(mailbox.name):
        # Two encoded words must be separated by whitespace
        encoded = " " + encoded
    return [name, encoded]


def format_address(name: str, email: str) -> str:
    """
    Format a name and email address the way they are written to a header.

    Examples:
        >>> format_address('', 'user@example.com')
        'user@example.com'
        >>> format_address('John Doe', 'john@example.com')
        'John Doe <john@example.com>'
    """
    return "".join(_address_chunks(Address(name, email)))


def _field_chunks(field: str, value: str) -> Iterator[str]:
    yield f"{field}: "

    addresses = None
    if field not in MESSAGE_ID_FIELDS:
        try:
            addresses = parse_address_list(value)
        except HeaderParseError:
            logger.debug("%s value is not an address list, writing it as text", field)

    if not addresses:
        yield encode_text(value)
        return

    last = len(addresses) - 1
    for index, mailbox in enumerate(addresses):
        name, addr = _address_chunks(mailbox)
        if index < last:
            # The comma stays on the line of the mailbox it follows
            addr += ", "
        yield name
        yield addr


def write_header(
    header,
    stream: BinaryIO,
    max_line_length: Optional[int] = None,
    linesep: Optional[str] = None,
) -> int:
    """
    Write every field of a header except Bcc to a binary stream.

    Args:
        header: The Header to write
        stream: Binary stream receiving the bytes
        max_line_length: Fold width, defaults to settings.MESSAGES_HEADER_FOLD_WIDTH
        linesep: Line terminator, defaults to settings.MESSAGES_HEADER_LINESEP

    Returns:
        Number of bytes written

    Raises:
        ValueError: If a field name is not printable ASCII without colon
        StreamWriteError: If the stream fails; ``written`` holds the bytes
            flushed before the failure
    """
    fields = header.fields()
    for field in fields:
        if not FIELD_NAME_RE.fullmatch(field):
            logger.error("Refusing to write invalid header field name %r", field)
            raise ValueError(f"Invalid header field name {field!r}")

    if max_line_length is None:
        max_line_length = getattr(
            settings, "MESSAGES_HEADER_FOLD_WIDTH", MAX_HEADER_TOTAL_LENGTH
        )
    if linesep is None:
        linesep = getattr(settings, "MESSAGES_HEADER_LINESEP", "\n")

    writer = HeaderLineWriter(stream, max_line_length=max_line_length, linesep=linesep)
    total = 0
    try:
        for field in fields:
            if field == "Bcc":
                continue  # Bcc recipients must stay hidden
            for value in header.get_all(field):
                writer.line_length = 0
                for chunk in _field_chunks(field, value):
                    total += writer.write(chunk.encode("utf-8"))
                total += writer.flush()
                total += writer.write(linesep.encode("ascii"))
    except StreamWriteError as e:
        logger.error("Failed to write header after %d bytes: %s", total + e.written, e)
        raise StreamWriteError(total + e.written, str(e)) from e
    return total


def header_to_bytes(header, **kwargs) -> bytes:
    """Return the bytes written by write_header for ``header``."""
    buffer = io.BytesIO()
    write_header(header, buffer, **kwargs)
    return buffer.getvalue()
