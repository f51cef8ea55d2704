"""
Scanner Tests - Key lookup and token reads across chunk boundaries.
"""

import pytest

from kvformat.scanner import (
    ScanCursor,
    read_line,
    read_token,
    scan_next_key,
    seek_to_key,
    seek_to_next_line,
)
from kvformat.spec import DEFAULT_CHUNK_SIZE
from kvformat.stream import MemoryStream

CHUNK_SIZES = [1, 2, 3, DEFAULT_CHUNK_SIZE]


class TrickleStream(MemoryStream):
    """MemoryStream that never returns more than `limit` bytes per read."""

    def __init__(self, initial: bytes, limit: int) -> None:
        super().__init__(initial)
        self.limit = limit

    def read(self, size: int) -> bytes:
        return super().read(min(size, self.limit))


# =============================================================================
# ScanCursor
# =============================================================================

class TestScanCursor:

    @pytest.mark.parametrize("chunk_size", CHUNK_SIZES)
    def test_yields_absolute_offsets(self, chunk_size):
        stream = MemoryStream(b"hello")
        stream.seek(1)
        pairs = list(ScanCursor(stream, chunk_size))
        assert pairs == [(1, ord("e")), (2, ord("l")), (3, ord("l")), (4, ord("o"))]

    def test_rejects_zero_chunk(self):
        with pytest.raises(ValueError, match="chunk_size"):
            ScanCursor(MemoryStream(b""), 0)


# =============================================================================
# scan_next_key
# =============================================================================

class TestScanNextKey:

    @pytest.mark.parametrize("chunk_size", CHUNK_SIZES)
    def test_finds_key_and_positions_on_delimiter(self, chunk_size):
        stream = MemoryStream(b"first: 1\nsecond: 2\n")
        assert scan_next_key(stream, chunk_size) == (b"first", 5)
        assert stream.tell() == 5

    @pytest.mark.parametrize("chunk_size", CHUNK_SIZES)
    def test_sequential_keys(self, chunk_size):
        stream = MemoryStream(b"first: 1\nsecond: 2\n")
        assert scan_next_key(stream, chunk_size)[0] == b"first"
        assert scan_next_key(stream, chunk_size) == (b"second", 15)

    def test_end_of_stream(self):
        stream = MemoryStream(b"no delimiter here\n")
        assert scan_next_key(stream) is None

    def test_empty_stream(self):
        assert scan_next_key(MemoryStream(b"")) is None

    def test_comment_line_with_delimiter_is_skipped(self):
        stream = MemoryStream(b"# note: not a key\nreal: 1\n")
        assert scan_next_key(stream) == (b"real", 22)

    def test_hash_inside_key_is_content(self):
        stream = MemoryStream(b"a#b: 1\n")
        assert scan_next_key(stream) == (b"a#b", 3)

    def test_line_starting_with_delimiter_is_skipped(self):
        stream = MemoryStream(b": orphan: x\nkey: 1\n")
        assert scan_next_key(stream)[0] == b"key"

    def test_carriage_return_is_ignored(self):
        stream = MemoryStream(b"one: 1\r\ntwo: 2\r\n")
        assert scan_next_key(stream)[0] == b"one"
        assert scan_next_key(stream) == (b"two", 11)

    def test_carriage_return_does_not_end_line_start(self):
        stream = MemoryStream(b"\r# hidden: 1\nshown: 2\n")
        assert scan_next_key(stream)[0] == b"shown"

    def test_key_is_case_sensitive_bytes(self):
        stream = MemoryStream("Ключ: 1\n".encode("utf-8"))
        assert scan_next_key(stream)[0] == "Ключ".encode("utf-8")

    @pytest.mark.parametrize("limit", [1, 2, 5])
    def test_short_reads(self, limit):
        data = b"# c: c\nalpha: 1\nbeta: 2\n"
        stream = TrickleStream(data, limit)
        assert scan_next_key(stream) == (b"alpha", 12)
        assert scan_next_key(stream) == (b"beta", 20)

    def test_chunk_size_never_changes_result(self):
        data = b"#x: y\n:bad\r\nk1: 1 2\n# c\nk2:3\n\nk3: x\n"
        expected = []
        stream = MemoryStream(data)
        while (found := scan_next_key(stream, len(data))) is not None:
            expected.append(found)

        for chunk_size in range(1, len(data) + 1):
            stream = MemoryStream(data)
            results = []
            while (found := scan_next_key(stream, chunk_size)) is not None:
                results.append(found)
            assert results == expected

        assert [key for key, _ in expected] == [b"k1", b"k2", b"k3"]


# =============================================================================
# seek_to_key
# =============================================================================

class TestSeekToKey:

    @pytest.mark.parametrize("chunk_size", CHUNK_SIZES)
    def test_lands_on_first_value(self, chunk_size):
        stream = MemoryStream(b"a: 1\nb: 2 3\n")
        assert seek_to_key(stream, "b", chunk_size=chunk_size)
        assert stream.tell() == 8
        assert stream.read(3) == b"2 3"

    def test_missing_key(self):
        data = b"a: 1\nb: 2 3\n"
        stream = MemoryStream(data)
        assert not seek_to_key(stream, "c")
        assert stream.size() == len(data)

    def test_strict_stops_at_first_mismatch(self):
        stream = MemoryStream(b"a: 1\nb: 2 3\n")
        assert not seek_to_key(stream, "c", strict=True)
        assert stream.tell() <= len(b"a: 1\n")

    def test_strict_finds_key_in_order(self):
        stream = MemoryStream(b"a: 1\nb: 2 3\n")
        assert seek_to_key(stream, "a", strict=True)
        assert seek_to_key(stream, "b", strict=True)

    def test_strict_fails_out_of_order(self):
        stream = MemoryStream(b"a: 1\nb: 2 3\n")
        assert not seek_to_key(stream, "b", strict=True)

    def test_permissive_skips_other_keys(self):
        stream = MemoryStream(b"a: 1\nb: 2 3\n")
        assert seek_to_key(stream, "b", strict=False)

    def test_comment_never_matches(self):
        stream = MemoryStream(b"# secret: 1\n")
        assert not seek_to_key(stream, "# secret")
        stream.rewind()
        assert not seek_to_key(stream, "secret")

    def test_value_text_is_not_a_key(self):
        stream = MemoryStream(b"url: http://example\n")
        assert not seek_to_key(stream, "http")

    def test_case_sensitive(self):
        stream = MemoryStream(b"Key: 1\n")
        assert not seek_to_key(stream, "key")

    def test_searches_from_cursor(self):
        stream = MemoryStream(b"a: 1\nb: 2\n")
        assert seek_to_key(stream, "b")
        assert not seek_to_key(stream, "a")


# =============================================================================
# Tokens and lines
# =============================================================================

class TestReadToken:

    @pytest.mark.parametrize("chunk_size", CHUNK_SIZES)
    def test_tokens_and_last_flag(self, chunk_size):
        stream = MemoryStream(b"10 20 30\nnext: 1\n")
        assert read_token(stream, chunk_size) == (b"10", False)
        assert stream.tell() == 2
        assert read_token(stream, chunk_size) == (b"20", False)
        assert read_token(stream, chunk_size) == (b"30", True)
        assert stream.tell() == 8

    def test_read_past_last_token_fails(self):
        stream = MemoryStream(b"30\n")
        assert read_token(stream) == (b"30", True)
        assert read_token(stream) is None

    def test_token_at_end_of_stream(self):
        stream = MemoryStream(b"1 2")
        assert read_token(stream) == (b"1", False)
        assert read_token(stream) == (b"2", True)
        assert stream.eof()

    def test_empty_line_is_malformed(self):
        assert read_token(MemoryStream(b"\n")) is None

    def test_empty_stream_is_malformed(self):
        assert read_token(MemoryStream(b"")) is None

    def test_leading_spaces_skipped(self):
        assert read_token(MemoryStream(b"   7\n")) == (b"7", True)

    def test_carriage_return_dropped(self):
        assert read_token(MemoryStream(b"7\r\n")) == (b"7", True)


class TestReadLine:

    @pytest.mark.parametrize("chunk_size", CHUNK_SIZES)
    def test_reads_rest_of_line(self, chunk_size):
        stream = MemoryStream(b"two  words\r\nnext: 1\n")
        assert read_line(stream, chunk_size) == "two  words"
        assert stream.tell() == 11

    def test_last_line_without_terminator(self):
        stream = MemoryStream(b"tail")
        assert read_line(stream) == "tail"
        assert stream.eof()

    def test_empty_line_is_no_value(self):
        stream = MemoryStream(b"\n")
        assert read_line(stream) is None
        assert stream.tell() == 0


class TestSeekToNextLine:

    @pytest.mark.parametrize("chunk_size", CHUNK_SIZES)
    def test_moves_past_terminator(self, chunk_size):
        stream = MemoryStream(b"a: 1\nb: 2\n")
        assert seek_to_next_line(stream, chunk_size) == 5
        assert stream.tell() == 5

    def test_last_line(self):
        stream = MemoryStream(b"a: 1")
        assert seek_to_next_line(stream) == 4
