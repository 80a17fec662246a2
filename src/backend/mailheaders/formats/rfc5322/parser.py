"""
RFC5322 header value parsing.

This module wraps the parsers the header model delegates to: the Flanker
address library for address lists, email.utils for dates and the standard
header registry for media types. Every failure is reported as a
HeaderParseError so callers only have one exception to deal with.
"""

import logging
from datetime import datetime
from email.headerregistry import HeaderRegistry
from email.utils import parsedate_to_datetime
from typing import Dict, List, NamedTuple, Tuple

from flanker.addresslib import address

logger = logging.getLogger(__name__)

MEDIA_TYPE_FIELDS = ("Content-Type", "Content-Disposition")

_header_registry = HeaderRegistry()


class HeaderParseError(ValueError):
    """Exception raised when a header value can not be parsed."""


class Address(NamedTuple):
    """A single mailbox: display name (possibly empty) and address."""

    name: str
    address: str


def parse_address_list(value: str) -> List[Address]:
    """
    Parse a comma-separated list of email addresses.

    Args:
        value: Raw header value, e.g. 'Jane <jane@example.com>, bob@example.com'

    Returns:
        List of Address tuples, in the order they appear

    Raises:
        HeaderParseError: If the value is empty or any entry is not a mailbox
    """
    if not value or not value.strip():
        raise HeaderParseError("No address in header value")

    parsed, unparsed = address.parse_list(value, as_tuple=True)
    if unparsed:
        raise HeaderParseError(f"Could not parse address list {value!r}")

    addresses = []
    for addr in parsed:
        # Flanker also recognizes URLs, which are not mailboxes
        if not isinstance(addr, address.EmailAddress):
            raise HeaderParseError(f"Not an email address: {addr}")
        addresses.append(Address(addr.display_name or "", addr.address))  # pylint: disable=no-member

    if not addresses:
        raise HeaderParseError(f"No address in header value {value!r}")
    return addresses


def parse_date(value: str) -> datetime:
    """
    Parse date string from email header.

    Args:
        value: Date string in RFC5322 format

    Returns:
        Datetime object (naive if the zone is unknown)

    Raises:
        HeaderParseError: If the value is not a valid date
    """
    try:
        # Use email.utils which handles RFC5322 date formats
        return parsedate_to_datetime(value)
    except (TypeError, ValueError) as e:
        logger.warning("Could not parse date string '%s': %s", value, e)
        raise HeaderParseError(f"Invalid date {value!r}") from e


def parse_media_type(
    value: str, field: str = "Content-Type"
) -> Tuple[str, Dict[str, str]]:
    """
    Parse a Content-Type or Content-Disposition value.

    Args:
        value: The raw header value, e.g. 'text/plain; charset="utf-8"'
        field: Which of the two fields the value belongs to

    Returns:
        Tuple of (lower-cased media type or disposition, parameters)

    Raises:
        HeaderParseError: If the value is malformed
    """
    if field not in MEDIA_TYPE_FIELDS:
        raise ValueError(f"{field} does not carry a media type")

    header = _header_registry(field, value)
    if header.defects:
        logger.warning("Could not parse %s value '%s': %s", field, value, header.defects)
        raise HeaderParseError(f"Invalid {field} {value!r}: {header.defects[0]}")

    if field == "Content-Disposition":
        media_type = header.content_disposition
    else:
        media_type = header.content_type
    return media_type, dict(header.params)
