"""
Line Scanner - Byte-level tokenizer for record lines.

Reads the stream in chunks of any size and tracks the absolute offset of every
byte it inspects, so the cursor can be put back exactly on a delimiter, a
separator or a line terminator no matter where the chunk boundary fell.
"""

from __future__ import annotations

import logging
from typing import Iterator

from kvformat.spec import (
    COMMENT,
    DEFAULT_CHUNK_SIZE,
    DELIMITER,
    EOL,
    EOL_IGNORE,
    SPACE,
)
from kvformat.stream import Origin, Stream

logger = logging.getLogger(__name__)


class ScanCursor:
    """Pull-based iterator over (absolute_offset, byte) pairs of a stream."""

    def __init__(self, stream: Stream, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self._stream = stream
        self._chunk_size = chunk_size

    def __iter__(self) -> Iterator[tuple[int, int]]:
        while True:
            base = self._stream.tell()
            chunk = self._stream.read(self._chunk_size)
            if not chunk:
                return
            for index, byte in enumerate(chunk):
                yield base + index, byte

    def reposition(self, offset: int) -> bool:
        """Move the stream cursor to an offset already seen by the scan."""
        return self._stream.seek(offset, Origin.START)


# =============================================================================
# Keys
# =============================================================================

def scan_next_key(
    stream: Stream, chunk_size: int = DEFAULT_CHUNK_SIZE
) -> tuple[bytes, int] | None:
    """
    Find the next key on a valid record line.

    Returns (key, delimiter_offset) with the stream positioned on the
    delimiter, or None at end of stream. Comment lines and lines that start
    with a delimiter are skipped.
    """
    cursor = ScanCursor(stream, chunk_size)
    key = bytearray()
    accumulating = True
    at_line_start = True

    for offset, byte in cursor:
        if byte == EOL:
            key.clear()
            accumulating = True
            at_line_start = True
        elif byte == EOL_IGNORE:
            pass
        elif byte == COMMENT and at_line_start:
            accumulating = False
            at_line_start = False
        elif byte == DELIMITER:
            if at_line_start:
                key.clear()
                accumulating = False
                at_line_start = False
            elif accumulating:
                if not cursor.reposition(offset):
                    logger.debug("cannot seek back to delimiter at %d", offset)
                    return None
                return bytes(key), offset
        else:
            at_line_start = False
            if accumulating:
                key.append(byte)

    return None


def seek_to_key(
    stream: Stream, key: str, strict: bool = False, chunk_size: int = DEFAULT_CHUNK_SIZE
) -> bool:
    """
    Position the stream on the first value token of key.

    Strict mode expects keys in a fixed order: the first key that doesn't
    match ends the search.
    """
    wanted = key.encode("utf-8")

    while not stream.eof():
        found = scan_next_key(stream, chunk_size)
        if found is None:
            break

        read_key, delimiter_offset = found
        if read_key == wanted:
            # skip the delimiter and the space after it
            return stream.seek(delimiter_offset + 2, Origin.START)
        if strict:
            logger.debug("strict lookup for %r stopped at %r", key, read_key)
            return False

    logger.debug("key %r not found", key)
    return False


# =============================================================================
# Values
# =============================================================================

def read_token(
    stream: Stream, chunk_size: int = DEFAULT_CHUNK_SIZE
) -> tuple[bytes, bool] | None:
    """
    Read one space-separated value token.

    Returns (token, last) where last is True if the token ends the line.
    The cursor is left on the byte that ended the token. None means an empty
    token at the end of the line or stream, which is malformed.
    """
    cursor = ScanCursor(stream, chunk_size)
    token = bytearray()

    for offset, byte in cursor:
        if byte == EOL:
            if not token:
                logger.debug("empty value at offset %d", offset)
                return None
            if not cursor.reposition(offset):
                return None
            return bytes(token), True
        elif byte == SPACE:
            if token:
                if not cursor.reposition(offset):
                    return None
                return bytes(token), False
        elif byte == EOL_IGNORE:
            pass
        else:
            token.append(byte)

    if token:
        return bytes(token), True
    logger.debug("no value before end of stream")
    return None


def read_line(stream: Stream, chunk_size: int = DEFAULT_CHUNK_SIZE) -> str | None:
    """
    Read the rest of the line as text, leaving the cursor on its terminator.
    An empty line reads as None.
    """
    cursor = ScanCursor(stream, chunk_size)
    line = bytearray()

    for offset, byte in cursor:
        if byte == EOL:
            if not cursor.reposition(offset):
                return None
            break
        if byte != EOL_IGNORE:
            line.append(byte)

    if not line:
        return None
    return line.decode("utf-8", errors="surrogateescape")


def seek_to_next_line(stream: Stream, chunk_size: int = DEFAULT_CHUNK_SIZE) -> int | None:
    """
    Move to the first byte of the next line, or to the end of the stream if
    this is the last line. Returns the new offset.
    """
    cursor = ScanCursor(stream, chunk_size)

    for offset, byte in cursor:
        if byte == EOL:
            if not cursor.reposition(offset + 1):
                return None
            return offset + 1

    return stream.tell()
