"""
KV Codec - Typed record reads, writes and in-place rewrites on a stream.

Every call re-derives what it needs from the stream: there is no index and
nothing is cached between calls. Outcomes are plain success values
(True/False, a value or None); backend OSErrors propagate untouched.

    request = WriteRequest("frequency", ValueType.UINT32, [433920000])
    write_record(stream, request)

    stream.rewind()
    read_values(stream, "frequency", ValueType.UINT32, 1)   # [433920000]
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Sequence

from kvformat.scanner import read_line, read_token, seek_to_key, seek_to_next_line
from kvformat.spec import COMMENT, DEFAULT_CHUNK_SIZE, DELIMITER, EOL, EOL_IGNORE, SPACE
from kvformat.stream import Origin, Stream
from kvformat.values import ValueType, format_value, parse_token

logger = logging.getLogger(__name__)


@dataclass
class WriteRequest:
    """One record to write: key, value type and the values themselves."""

    key: str
    value_type: ValueType
    values: Any = None
    count: int | None = None

    def __post_init__(self) -> None:
        if self.value_type is ValueType.TEXT:
            self.count = 1
        elif self.value_type is ValueType.IGNORE:
            self.count = 0
        elif self.count is None:
            self.count = len(self.values)

    @classmethod
    def ignore(cls, key: str) -> WriteRequest:
        return cls(key, ValueType.IGNORE)


def _write(stream: Stream, data: bytes) -> bool:
    written = stream.write(data)
    if written != len(data):
        logger.debug("short write: %d of %d bytes", written, len(data))
        return False
    return True


# =============================================================================
# Writer
# =============================================================================

def _check_key(key: bytes) -> None:
    if not key:
        raise ValueError("Key cannot be empty")
    if key[0] == COMMENT:
        raise ValueError(f"Key cannot start with a comment marker: {key!r}")
    if any(byte in (DELIMITER, EOL, EOL_IGNORE) for byte in key):
        raise ValueError(f"Key contains a reserved byte: {key!r}")


def format_record(request: WriteRequest) -> bytes:
    """
    Serialize a request to its full record line. Raises ValueError for a
    record the reader could not find or read back.
    """
    key = request.key.encode("utf-8")
    _check_key(key)

    if request.value_type is ValueType.TEXT:
        values: Sequence[Any] = [request.values]
    else:
        values = list(request.values)
        if request.count != len(values):
            raise ValueError(
                f"Record {request.key!r} has {len(values)} value(s), count is {request.count}"
            )

    body = " ".join(format_value(request.value_type, value) for value in values)
    if request.value_type is ValueType.TEXT and any(
        char in body for char in (chr(EOL), chr(EOL_IGNORE))
    ):
        raise ValueError(f"Text value for {request.key!r} contains a line terminator")

    return (
        key
        + bytes((DELIMITER, SPACE))
        + body.encode("utf-8", errors="surrogateescape")
        + bytes((EOL,))
    )


def write_record(stream: Stream, request: WriteRequest) -> bool:
    """Write "key: values" at the cursor. IGNORE writes nothing."""
    if request.value_type is ValueType.IGNORE:
        return True
    return _write(stream, format_record(request))


def write_comment(stream: Stream, text: str) -> bool:
    """Write "# text". The text must not contain a line terminator."""
    return _write(stream, bytes((COMMENT, SPACE)) + text.encode("utf-8") + bytes((EOL,)))


# =============================================================================
# Reader
# =============================================================================

def read_located_values(
    stream: Stream,
    value_type: ValueType,
    count: int = 1,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> Any:
    """
    Read values from a stream already positioned by seek_to_key().

    TEXT returns the rest of the line as a str. Other types return a list of
    exactly count values. None on an empty record, a token that doesn't
    parse, or a line holding fewer or more than count tokens.
    """
    if value_type is ValueType.TEXT:
        return read_line(stream, chunk_size)

    if count < 1:
        logger.debug("cannot read %d values", count)
        return None

    values = []
    for index in range(count):
        result = read_token(stream, chunk_size)
        if result is None:
            return None

        token, last = result
        value = parse_token(value_type, token)
        if value is None:
            logger.debug("cannot parse %r as %s", token, value_type.value)
            return None
        values.append(value)

        if last != (index + 1 == count):
            logger.debug("expected %d values, line has %s", count,
                         index + 1 if last else "more")
            return None

    return values


def read_values(
    stream: Stream,
    key: str,
    value_type: ValueType,
    count: int = 1,
    strict: bool = False,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> Any:
    """Look up key and read its values. See read_located_values()."""
    if not seek_to_key(stream, key, strict, chunk_size):
        return None
    return read_located_values(stream, value_type, count, chunk_size)


def count_values(
    stream: Stream, key: str, strict: bool = False, chunk_size: int = DEFAULT_CHUNK_SIZE
) -> int | None:
    """
    Count the value tokens of key. The cursor is restored before returning,
    whether or not the key was found.
    """
    position = stream.tell()
    count: int | None = None

    if seek_to_key(stream, key, strict, chunk_size):
        count = 0
        while True:
            result = read_token(stream, chunk_size)
            if result is None:
                count = None
                break
            count += 1
            if result[1]:
                break

    if not stream.seek(position, Origin.START):
        return None
    return count


# =============================================================================
# Rewrite
# =============================================================================

def replace_record(
    stream: Stream,
    request: WriteRequest,
    strict: bool = False,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> bool:
    """
    Replace the existing record for request.key with a freshly written one.

    The key must already exist; nothing is inserted. An IGNORE request
    removes the record line. The splice is atomic: on failure the stream
    content is unchanged.
    """
    if stream.size() == 0:
        return False
    if not stream.rewind():
        return False
    if not seek_to_key(stream, request.key, strict, chunk_size):
        return False

    start = stream.tell() - len(request.key.encode("utf-8")) - 2
    if start < 0:
        logger.debug("record start for %r underflows: %d", request.key, start)
        return False

    end = seek_to_next_line(stream, chunk_size)
    if end is None:
        return False

    if not stream.seek(start, Origin.START):
        return False
    return stream.splice(end - start, lambda staging: write_record(staging, request))
