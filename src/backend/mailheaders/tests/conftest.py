"""Fixtures for the mail headers test suite"""
# pylint: disable=redefined-outer-name

from datetime import datetime
from datetime import timezone as dt_timezone
from unittest import mock

import pytest

from mailheaders.mime.identifiers import IdentityProvider

FIXED_NOW = datetime(2026, 10, 18, 14, 1, 30, tzinfo=dt_timezone.utc)


class FixedIdentity(IdentityProvider):
    """Identity provider returning constant values."""

    def hostname(self):
        return "mail.test.example"

    def pid(self):
        return 4242

    def nanoseconds(self):
        return 1760796090000000000


@pytest.fixture
def identity():
    """An identity provider with predictable output."""
    return FixedIdentity()


@pytest.fixture
def fixed_random():
    """Make the 63 random bits of generated identifiers constant."""
    with mock.patch(
        "mailheaders.mime.identifiers.secrets.randbits", return_value=1234
    ) as randbits:
        yield randbits


@pytest.fixture
def fixed_now():
    """Freeze the local time used for the Date field."""
    with mock.patch(
        "mailheaders.formats.rfc5322.header.timezone.localtime", return_value=FIXED_NOW
    ):
        yield FIXED_NOW
