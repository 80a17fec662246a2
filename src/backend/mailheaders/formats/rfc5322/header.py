"""
RFC5322 message header model.

A Header maps canonical field names ("Content-Type", "Message-Id", ...) to
the list of values stored under them, in insertion order. It has no locking:
build one Header per message and do not share it between threads while it
is being modified.
"""

import datetime
import logging
import re
from typing import BinaryIO, Dict, Iterator, List, Optional, Tuple

from django.conf import settings
from django.utils import timezone

from mailheaders.mime.identifiers import IdentityProvider, gen_message_id

from .composer import header_to_bytes, write_header
from .parser import Address, parse_address_list, parse_date, parse_media_type

logger = logging.getLogger(__name__)

ADDRESS_SEPARATOR = ", "
RFC822_MONTHS = "Jan Feb Mar Apr May Jun Jul Aug Sep Oct Nov Dec".split()

# RFC 7230 token characters; other keys are stored as given
_TOKEN_RE = re.compile(r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+")
_FIELD_NAME_EXCEPTIONS = {"Mime-Version": "MIME-Version"}


class MissingFieldError(LookupError):
    """Exception raised when a header field needed by an accessor is absent."""


def canonical_field_name(key: str) -> str:
    """
    Return the canonical spelling of a header field name.

    Examples:
        >>> canonical_field_name("content-type")
        'Content-Type'
        >>> canonical_field_name("mime-version")
        'MIME-Version'
    """
    if not _TOKEN_RE.fullmatch(key):
        return key
    canonical = "-".join(part.capitalize() for part in key.split("-"))
    return _FIELD_NAME_EXCEPTIONS.get(canonical, canonical)


def format_rfc822_date(value: datetime.datetime) -> str:
    """Format a datetime as "02 Jan 06 15:04 MST", whatever the locale."""
    zone = value.tzname()
    if not zone or not zone.isalpha():
        zone = value.strftime("%z")
    return (
        f"{value.day:02d} {RFC822_MONTHS[value.month - 1]} {value.year % 100:02d} "
        f"{value.hour:02d}:{value.minute:02d} {zone}"
    )


def _local_now() -> datetime.datetime:
    if settings.USE_TZ:
        return timezone.localtime()
    return datetime.datetime.now().astimezone()


class Header:
    """The key-value pairs in a mail message header."""

    def __init__(self, fields: Optional[Dict[str, List[str]]] = None):
        self._fields: Dict[str, List[str]] = {}
        for key, values in (fields or {}).items():
            for value in values:
                self.add(key, value)

    def __contains__(self, key: str) -> bool:
        return self.is_set(key)

    def __iter__(self) -> Iterator[str]:
        return iter(self.fields())

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"<Header {self.fields()}>"

    def add(self, key: str, value: str) -> None:
        """Append ``value`` to the values of ``key``."""
        self._fields.setdefault(canonical_field_name(key), []).append(value)

    def set(self, key: str, value: str) -> None:
        """Replace any values of ``key`` with the single ``value``."""
        self._fields[canonical_field_name(key)] = [value]

    def get(self, key: str) -> str:
        """Return the first value of ``key``, or "" if it is not set."""
        values = self._fields.get(canonical_field_name(key))
        if not values:
            return ""
        return values[0]

    def get_all(self, key: str) -> List[str]:
        """Return a copy of all values of ``key``, in insertion order."""
        return list(self._fields.get(canonical_field_name(key), []))

    def is_set(self, key: str) -> bool:
        return canonical_field_name(key) in self._fields

    def delete(self, key: str) -> None:
        """Remove ``key`` and all its values."""
        self._fields.pop(canonical_field_name(key), None)

    def fields(self) -> List[str]:
        """Return the canonical names of the set fields, sorted."""
        return sorted(self._fields)

    # Parsed accessors

    def date(self) -> datetime.datetime:
        """Parse the Date field."""
        value = self.get("Date")
        if not value:
            raise MissingFieldError("Date")
        return parse_date(value)

    def address_list(self, key: str) -> List[Address]:
        """Parse the ``key`` field as a list of addresses."""
        value = self.get(key)
        if not value:
            raise MissingFieldError(canonical_field_name(key))
        return parse_address_list(value)

    def content_type(self) -> Tuple[str, Dict[str, str]]:
        """Return the content media type and its parameters."""
        return self._parse_media_type("Content-Type")

    def content_disposition(self) -> Tuple[str, Dict[str, str]]:
        """Return the content disposition and its parameters."""
        return self._parse_media_type("Content-Disposition")

    def _parse_media_type(self, field: str) -> Tuple[str, Dict[str, str]]:
        value = self.get(field)
        if not value:
            raise MissingFieldError(field)
        return parse_media_type(value, field)

    # Sending

    def save(self, identity: Optional[IdentityProvider] = None) -> None:
        """
        Add the Message-Id and Date fields if missing, and set MIME-Version.

        Raises:
            IdentifierGenerationError: If the Message-Id can not be created
        """
        if not self.get("Message-Id"):
            message_id = gen_message_id(identity)
            self.set("Message-Id", f"<{message_id}>")
            logger.debug("Generated Message-Id <%s>", message_id)
        if not self.get("Date"):
            self.set("Date", format_rfc822_date(_local_now()))
        self.set("MIME-Version", "1.0")

    def write_to(self, stream: BinaryIO, **kwargs) -> int:
        """Write the header to ``stream``, see composer.write_header."""
        return write_header(self, stream, **kwargs)

    def as_bytes(self, **kwargs) -> bytes:
        return header_to_bytes(self, **kwargs)

    # Convenience fields

    def get_from(self) -> str:
        return self.get("From")

    def set_from(self, email: str) -> None:
        self.set("From", email)

    def get_to(self) -> List[str]:
        return self._get_addresses("To")

    def set_to(self, *emails: str) -> None:
        self.set("To", ADDRESS_SEPARATOR.join(emails))

    def get_cc(self) -> List[str]:
        return self._get_addresses("Cc")

    def set_cc(self, *emails: str) -> None:
        self.set("Cc", ADDRESS_SEPARATOR.join(emails))

    def get_bcc(self) -> List[str]:
        return self._get_addresses("Bcc")

    def set_bcc(self, *emails: str) -> None:
        self.set("Bcc", ADDRESS_SEPARATOR.join(emails))

    def get_subject(self) -> str:
        return self.get("Subject")

    def set_subject(self, subject: str) -> None:
        self.set("Subject", subject)

    def _get_addresses(self, key: str) -> List[str]:
        value = self.get(key)
        if not value:
            return []
        return value.split(ADDRESS_SEPARATOR)


def new_header(from_address: str, subject: str, *to: str) -> Header:
    """Return a Header with From, Subject and, if given, To set."""
    header = Header()
    header.set_subject(subject)
    header.set_from(from_address)
    if to:
        header.set_to(*to)
    return header
