"""
Globally unique identifiers for Message-ID, Content-ID and MIME boundaries.

Identifiers follow the Message-ID shape (a subset of an email address):

    1760796060123456789.4242.5577006791947779410@mail.example.com

i.e. UTC nanoseconds, process id and 63 random bits, optionally followed by
a discriminator such as an attachment filename, then the host name.
"""

import logging
import os
import secrets
import socket
import time
from typing import Optional

from django.conf import settings

logger = logging.getLogger(__name__)

RANDOM_BITS = 63
BOUNDARY_BYTES = 30


class IdentifierGenerationError(RuntimeError):
    """Exception raised when the entropy source fails."""


class IdentityProvider:
    """Host name, process id and clock stamped into generated identifiers.

    Pass a subclass to the generators to make their output predictable.
    """

    def hostname(self) -> str:
        """Return settings.MESSAGES_ID_HOSTNAME, the machine name or "localhost"."""
        configured = getattr(settings, "MESSAGES_ID_HOSTNAME", None)
        if configured:
            return configured
        try:
            hostname = socket.gethostname()
        except OSError as e:
            logger.warning("Could not determine host name, using localhost: %s", e)
            return "localhost"
        return hostname or "localhost"

    def pid(self) -> int:
        return os.getpid()

    def nanoseconds(self) -> int:
        return time.time_ns()


def generate_id(
    discriminator: str = "", identity: Optional[IdentityProvider] = None
) -> str:
    """
    Create a globally unique identifier in the Message-ID format.

    Args:
        discriminator: Optional string appended to the local part
        identity: Provider for host name, pid and time (defaults to this process)

    Returns:
        The identifier, without surrounding angle brackets

    Raises:
        IdentifierGenerationError: If no random number could be drawn
    """
    identity = identity or IdentityProvider()
    try:
        random = secrets.randbits(RANDOM_BITS)
    except OSError as e:
        logger.error("Entropy source failed while generating an identifier: %s", e)
        raise IdentifierGenerationError(
            f"Could not generate a unique identifier: {e}"
        ) from e

    local_part = f"{identity.nanoseconds()}.{identity.pid()}.{random}"
    if discriminator:
        local_part = f"{local_part}.{discriminator}"
    return f"{local_part}@{identity.hostname()}"


def gen_message_id(identity: Optional[IdentityProvider] = None) -> str:
    """Create a Message-ID, without surrounding angle brackets."""
    return generate_id("", identity)


def gen_content_id(filename: str, identity: Optional[IdentityProvider] = None) -> str:
    """Create a Content-ID for ``filename``, without surrounding angle brackets."""
    return generate_id(filename, identity)


def random_boundary() -> str:
    """Return 60 random hex characters usable as a multipart boundary."""
    try:
        return secrets.token_bytes(BOUNDARY_BYTES).hex()
    except OSError as e:
        logger.error("Entropy source failed while generating a boundary: %s", e)
        raise IdentifierGenerationError(
            f"Could not generate a MIME boundary: {e}"
        ) from e
