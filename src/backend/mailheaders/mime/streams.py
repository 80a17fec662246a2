"""
Streaming helpers used when writing and reading MIME messages.

HeaderLineWriter folds header lines, Base64LineWriter wraps encoded body
lines at a fixed width and LeftTrimReader drops the whitespace that may
precede an encoded body.
"""

import io
from typing import BinaryIO

MAX_HEADER_LINE_LENGTH = 78
MAX_HEADER_TOTAL_LENGTH = 998
MAX_BASE64_LINE_LENGTH = 76

ASCII_WHITESPACE = b" \t\n\r"


class StreamWriteError(OSError):
    """Raised when the underlying stream refuses bytes.

    ``written`` is the number of bytes flushed before the failure.
    """

    def __init__(self, written: int, message: str):
        super().__init__(message)
        self.written = written


class _LineWriter:
    """Common plumbing for the line length aware writers."""

    def __init__(self, stream: BinaryIO, max_line_length: int, linesep: str = "\n"):
        self.stream = stream
        self.max_line_length = max_line_length
        self.linesep = linesep.encode("ascii")
        self.line_length = 0

    def _write(self, data: bytes, flushed: int) -> int:
        try:
            written = self.stream.write(data)
        except OSError as e:
            raise StreamWriteError(flushed, str(e)) from e
        if written is None:
            written = len(data)
        if written < len(data):
            raise StreamWriteError(
                flushed + written, f"short write: {written} of {len(data)} bytes"
            )
        return written


class HeaderLineWriter(_LineWriter):
    """Write header text, folding lines longer than ``max_line_length``.

    Lines are folded before the last space that fits, so the continuation
    line starts with that space. One column is reserved for it after each
    fold. Runs without any space are never cut: the fold moves to the first
    space after the limit, or does not happen at all.

    Trailing spaces of a chunk are held back and written in front of the
    next one, so the space between two chunks (as in "Subject: " followed by
    the value) is also a fold point.

    The composer resets ``line_length`` to 0 before each header field.
    """

    def __init__(
        self,
        stream: BinaryIO,
        max_line_length: int = MAX_HEADER_TOTAL_LENGTH,
        linesep: str = "\n",
    ):
        super().__init__(stream, max_line_length, linesep)
        self.pending = b""

    def write(self, data: bytes) -> int:
        """Write ``data`` and return the number of bytes sent to the stream."""
        data = self.pending + data
        kept = data.rstrip(b" ")
        self.pending = data[len(kept) :]
        data = kept

        total = 0
        while len(data) + self.line_length > self.max_line_length:
            cut = self._fold_point(data)
            if cut is None:
                break
            if cut:
                total += self._write(data[:cut], total)
            total += self._write(self.linesep, total)
            data = data[cut:]
            self.line_length = 1  # continuation lines are indented
        if not data:
            return total
        written = self._write(data, total)
        self.line_length += written
        return total + written

    def flush(self) -> int:
        """Write the spaces held back from the last chunk."""
        data, self.pending = self.pending, b""
        if not data:
            return 0
        written = self._write(data, 0)
        self.line_length += written
        return written

    def _fold_point(self, data: bytes):
        # A space at offset 0 only helps when something precedes it on the line
        start = 0 if self.line_length > 1 else 1
        limit = max(self.max_line_length - self.line_length, 0)
        cut = data.rfind(b" ", start, limit)
        if cut == -1:
            cut = data.find(b" ", max(limit, start))
        if cut == -1:
            return None
        return cut


class Base64LineWriter(_LineWriter):
    """Hard wrap already encoded base64 output every ``max_line_length`` bytes."""

    def __init__(self, stream: BinaryIO, max_line_length: int = MAX_BASE64_LINE_LENGTH):
        super().__init__(stream, max_line_length)

    def write(self, data: bytes) -> int:
        total = 0
        while len(data) + self.line_length > self.max_line_length:
            size = self.max_line_length - self.line_length
            total += self._write(data[:size], total)
            total += self._write(self.linesep, total)
            data = data[size:]
            self.line_length = 0
        written = self._write(data, total)
        self.line_length += written
        return total + written


def buffered_reader(stream) -> io.BufferedReader:
    """Return ``stream`` if it can peek, otherwise a buffered wrapper around it."""
    if isinstance(stream, (io.BufferedReader, io.BufferedRandom)):
        return stream
    return io.BufferedReader(stream)


class LeftTrimReader(io.RawIOBase):
    """Read a stream with its leading ASCII whitespace removed.

    Only the start of the stream is trimmed: once a non-whitespace byte has
    been seen (or the stream is exhausted) every read goes straight to the
    wrapped reader.
    """

    def __init__(self, stream):
        super().__init__()
        self.stream = buffered_reader(stream)
        self.done = False

    def readable(self):
        return True

    def readinto(self, buffer):
        if not self.done:
            self._discard_leading_whitespace()
        data = self.stream.read1(len(buffer))
        buffer[: len(data)] = data
        return len(data)

    def _discard_leading_whitespace(self):
        while not self.done:
            # peek() fills an empty buffer and returns everything buffered
            window = self.stream.peek(1)
            if not window:
                self.done = True
                break
            count = len(window) - len(window.lstrip(ASCII_WHITESPACE))
            if count:
                self.stream.read(count)
            if count < len(window):
                self.done = True
