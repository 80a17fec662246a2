"""
Tests for the MIME stream helpers.
"""

import base64
import io

import pytest

from mailheaders.mime.streams import (
    MAX_BASE64_LINE_LENGTH,
    MAX_HEADER_LINE_LENGTH,
    Base64LineWriter,
    HeaderLineWriter,
    LeftTrimReader,
    StreamWriteError,
    buffered_reader,
)


class FailingStream:
    """Binary sink that fails after a number of successful writes."""

    def __init__(self, successful_writes):
        self.successful_writes = successful_writes
        self.data = b""

    def write(self, data):
        if self.successful_writes == 0:
            raise OSError("No space left on device")
        self.successful_writes -= 1
        self.data += data
        return len(data)


class TestHeaderLineWriter:
    """Tests for header line folding."""

    def test_short_line_is_not_folded(self):
        """Test that text fitting on the line is written as is."""
        out = io.BytesIO()
        writer = HeaderLineWriter(out, max_line_length=20)
        assert writer.write(b"Subject: ") == 8
        assert writer.write(b"hello") == 6
        assert out.getvalue() == b"Subject: hello"
        assert writer.line_length == 14

    def test_trailing_spaces_are_held_back(self):
        """Test that trailing spaces are written with the next chunk or on flush."""
        out = io.BytesIO()
        writer = HeaderLineWriter(out, max_line_length=20)
        writer.write(b"Subject:  ")
        assert out.getvalue() == b"Subject:"
        assert writer.flush() == 2
        assert writer.flush() == 0
        assert out.getvalue() == b"Subject:  "
        assert writer.line_length == 10

    def test_fold_at_last_space(self):
        """Test that lines are folded before the last space that fits."""
        out = io.BytesIO()
        writer = HeaderLineWriter(out, max_line_length=10)
        written = writer.write(b"hello world foo")
        assert out.getvalue() == b"hello\n world\n foo"
        assert written == len(out.getvalue())
        assert writer.line_length == 5

    def test_continuation_reserves_one_column(self):
        """Test that the line length restarts at 1 after a fold."""
        out = io.BytesIO()
        writer = HeaderLineWriter(out, max_line_length=10)
        writer.write(b"aaaa bbbbbbb")
        assert out.getvalue() == b"aaaa\n bbbbbbb"
        assert writer.line_length == 1 + len(b" bbbbbbb")

    def test_fold_accounts_for_previous_writes(self):
        """Test that text already on the line counts towards the limit."""
        out = io.BytesIO()
        writer = HeaderLineWriter(out, max_line_length=16)
        writer.write(b"Subject: ")
        writer.write(b"one two three")
        assert out.getvalue() == b"Subject: one\n two three"

    def test_chunk_starting_with_space_folds_before_it(self):
        """Test that a leading space is a fold point when the line has content."""
        out = io.BytesIO()
        writer = HeaderLineWriter(out, max_line_length=12)
        writer.write(b"To: Jane")
        writer.write(b" <j@x.com>")
        assert out.getvalue() == b"To: Jane\n <j@x.com>"

    def test_fold_between_chunks(self):
        """Test folding at the space separating a field name from its value."""
        out = io.BytesIO()
        writer = HeaderLineWriter(out, max_line_length=20)
        writer.write(b"Subject: ")
        writer.write(b"abcdefghijklmno xyz")
        assert out.getvalue() == b"Subject:\n abcdefghijklmno\n xyz"
        assert all(len(line) <= 20 for line in out.getvalue().split(b"\n"))

    def test_oversized_token_gets_its_own_line(self):
        """Test that a token wider than the width only overflows its own line."""
        out = io.BytesIO()
        writer = HeaderLineWriter(out, max_line_length=10)
        writer.write(b"To: ")
        writer.write(b"abcdefghijklmnop")
        writer.write(b", ")
        writer.write(b"qr")
        assert out.getvalue() == b"To:\n abcdefghijklmnop,\n qr"

    def test_token_without_space_is_not_split(self):
        """Test that a run without spaces is written whole."""
        out = io.BytesIO()
        writer = HeaderLineWriter(out, max_line_length=10)
        writer.write(b"abcdefghijklmnop")
        assert out.getvalue() == b"abcdefghijklmnop"

    def test_long_token_folds_at_next_space(self):
        """Test that a too long token moves the fold to the space after it."""
        out = io.BytesIO()
        writer = HeaderLineWriter(out, max_line_length=10)
        writer.write(b"abcdefghijkl mn")
        assert out.getvalue() == b"abcdefghijkl\n mn"

    def test_line_terminator_never_creates_blank_line(self):
        """Test that a full line followed by the terminator is not folded."""
        out = io.BytesIO()
        writer = HeaderLineWriter(out, max_line_length=10)
        writer.write(b"0123456789")
        writer.write(b"\n")
        assert out.getvalue() == b"0123456789\n"

    def test_crlf_line_separator(self):
        """Test folding with a configured CRLF separator."""
        out = io.BytesIO()
        writer = HeaderLineWriter(out, max_line_length=10, linesep="\r\n")
        writer.write(b"hello world")
        assert out.getvalue() == b"hello\r\n world"

    def test_lines_stay_within_width(self):
        """Test that folded lines never exceed the width when words fit."""
        text = b" ".join(b"word%d" % i for i in range(200))
        out = io.BytesIO()
        writer = HeaderLineWriter(out, max_line_length=MAX_HEADER_LINE_LENGTH)
        writer.write(b"Keywords: ")
        writer.write(text)
        lines = out.getvalue().split(b"\n")
        assert len(lines) > 1
        assert all(len(line) <= MAX_HEADER_LINE_LENGTH for line in lines)
        assert all(line.startswith(b" ") for line in lines[1:])
        # Unfolding restores the input
        assert out.getvalue().replace(b"\n", b"") == b"Keywords: " + text

    def test_write_error_reports_flushed_bytes(self):
        """Test that a failing stream raises with the partial byte count."""
        stream = FailingStream(successful_writes=1)
        writer = HeaderLineWriter(stream, max_line_length=10)
        with pytest.raises(StreamWriteError) as exc_info:
            writer.write(b"hello world foo")
        assert exc_info.value.written == 5
        assert isinstance(exc_info.value.__cause__, OSError)
        assert stream.data == b"hello"

    def test_short_write_is_an_error(self):
        """Test that a stream accepting fewer bytes than given is reported."""

        class ShortStream:
            def write(self, data):
                return len(data) - 1

        writer = HeaderLineWriter(ShortStream())
        with pytest.raises(StreamWriteError) as exc_info:
            writer.write(b"abc")
        assert exc_info.value.written == 2


class TestBase64LineWriter:
    """Tests for fixed width base64 wrapping."""

    def test_wraps_at_width(self):
        """Test that output is hard wrapped every max_line_length bytes."""
        out = io.BytesIO()
        writer = Base64LineWriter(out, max_line_length=4)
        written = writer.write(b"abcdefghij")
        assert out.getvalue() == b"abcd\nefgh\nij"
        assert written == len(out.getvalue())
        assert writer.line_length == 2

    def test_line_continues_across_writes(self):
        """Test that the current line is carried over between writes."""
        out = io.BytesIO()
        writer = Base64LineWriter(out, max_line_length=4)
        writer.write(b"abcdefghij")
        writer.write(b"kl")
        writer.write(b"m")
        assert out.getvalue() == b"abcd\nefgh\nijkl\nm"

    def test_default_width(self):
        """Test wrapping an encoded payload at the default 76 columns."""
        encoded = base64.b64encode(bytes(range(256)) * 2)
        out = io.BytesIO()
        writer = Base64LineWriter(out)
        for i in range(0, len(encoded), 50):
            writer.write(encoded[i : i + 50])
        lines = out.getvalue().split(b"\n")
        assert all(len(line) == MAX_BASE64_LINE_LENGTH for line in lines[:-1])
        assert b"".join(lines) == encoded
        assert base64.b64decode(out.getvalue()) == bytes(range(256)) * 2

    def test_write_error_reports_flushed_bytes(self):
        """Test that a failing stream raises with the partial byte count."""
        writer = Base64LineWriter(FailingStream(successful_writes=1), max_line_length=4)
        with pytest.raises(StreamWriteError) as exc_info:
            writer.write(b"abcdefgh")
        assert exc_info.value.written == 4


class TestLeftTrimReader:
    """Tests for the leading whitespace trimming reader."""

    def test_trims_leading_whitespace(self):
        """Test that spaces, tabs and line breaks at the start are dropped."""
        reader = LeftTrimReader(io.BytesIO(b" \t\r\n  hello world \n"))
        assert reader.read() == b"hello world \n"

    @pytest.mark.parametrize("count", [0, 1, 5, 100])
    @pytest.mark.parametrize("buffer_size", [1, 3, 4096])
    def test_trims_across_buffer_fills(self, count, buffer_size):
        """Test trimming whitespace longer than the buffered window."""
        data = (b" \t\n\r" * 25)[:count] + b"SGVs bG8=\n"
        source = io.BufferedReader(io.BytesIO(data), buffer_size=buffer_size)
        assert LeftTrimReader(source).read() == b"SGVs bG8=\n"

    def test_later_whitespace_is_kept(self):
        """Test that whitespace after the first content byte is untouched."""
        source = io.BufferedReader(io.BytesIO(b"  a  \n  b"), buffer_size=3)
        reader = LeftTrimReader(source)
        assert reader.read(1) == b"a"
        assert reader.read() == b"  \n  b"

    def test_only_whitespace(self):
        """Test that a stream of whitespace reads as empty."""
        assert LeftTrimReader(io.BytesIO(b" \n\t\r ")).read() == b""

    def test_empty_stream(self):
        """Test that an empty stream reads as empty."""
        reader = LeftTrimReader(io.BytesIO(b""))
        assert reader.read() == b""
        assert reader.done

    def test_readinto(self):
        """Test reading into a caller supplied buffer."""
        reader = LeftTrimReader(io.BytesIO(b"\n\nabcdef"))
        buffer = bytearray(4)
        assert reader.readinto(buffer) == 4
        assert bytes(buffer) == b"abcd"

    def test_buffered_reader_is_reused(self):
        """Test that an existing buffered reader is not wrapped again."""
        source = io.BufferedReader(io.BytesIO(b"x"))
        assert buffered_reader(source) is source
        assert isinstance(buffered_reader(io.BytesIO(b"x")), io.BufferedReader)
