"""
KV File - Typed, exception-raising access to a KV format stream.

Usage:
    # On disk
    with KVFile.open("remote.kvf", create=True) as kv:
        kv.write_header("IR signals file", 1)
        kv.write_uint32("frequency", [38000])

    # Update in place (record may change length)
    with KVFile.open("remote.kvf") as kv:
        kv.update("frequency", ValueType.UINT32, [36000])

    # In memory
    kv = KVFile.from_bytes(b"Filetype: Demo\\nVersion: 1\\n")
    kv.read_header()   # ("Demo", 1)

Reads and key lookups start at the current cursor, like the underlying
stream: rewind() before looking up a key that may sit earlier in the file.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Sequence

from kvformat import codec
from kvformat.errors import HeaderError, KeyNotFoundError, ValueReadError, WriteError
from kvformat.scanner import seek_to_key
from kvformat.spec import DEFAULT_CHUNK_SIZE, EOL, FILETYPE_KEY, VERSION_KEY
from kvformat.stream import FileStream, MemoryStream, Origin, Stream
from kvformat.values import ValueType


class KVFile:
    """KV format reader/writer bound to one stream."""

    def __init__(
        self, stream: Stream, strict: bool = False, chunk_size: int = DEFAULT_CHUNK_SIZE
    ) -> None:
        self.stream = stream
        self.strict = strict
        self.chunk_size = chunk_size

    @classmethod
    def open(cls, path: str | Path, create: bool = False, strict: bool = False) -> KVFile:
        """Open a file on disk. create=True starts an empty file."""
        return cls(FileStream.open(path, create=create), strict=strict)

    @classmethod
    def from_bytes(cls, data: bytes = b"", strict: bool = False) -> KVFile:
        return cls(MemoryStream(data), strict=strict)

    # =========================================================================
    # Cursor
    # =========================================================================

    def rewind(self) -> None:
        if not self.stream.rewind():
            raise WriteError("Cannot rewind stream")

    def seek_to_end(self) -> None:
        if not self.stream.seek(0, Origin.END):
            raise WriteError("Cannot seek to end of stream")

    def getvalue(self) -> bytes:
        if not isinstance(self.stream, MemoryStream):
            raise TypeError("getvalue() needs a memory-backed KVFile")
        return self.stream.getvalue()

    # =========================================================================
    # Header
    # =========================================================================

    def write_header(self, filetype: str, version: int) -> None:
        self.write_string(FILETYPE_KEY, filetype)
        self.write_uint32(VERSION_KEY, [version])

    def read_header(self) -> tuple[str, int]:
        """Read (filetype, version) from the start of the file."""
        self.rewind()
        try:
            filetype = self.read_string(FILETYPE_KEY)
            version = self.read_uint32(VERSION_KEY)[0]
        except (KeyNotFoundError, ValueReadError) as exc:
            raise HeaderError(f"Invalid header: {exc}") from exc
        return filetype, version

    def verify_header(self, filetype: str, version: int) -> None:
        found = self.read_header()
        if found != (filetype, version):
            raise HeaderError(
                f"Expected {filetype!r} version {version}, "
                f"got {found[0]!r} version {found[1]}"
            )

    # =========================================================================
    # Introspection
    # =========================================================================

    def key_exists(self, key: str) -> bool:
        """Check for key after the cursor. The cursor is left where it was."""
        position = self.stream.tell()
        found = seek_to_key(self.stream, key, self.strict, self.chunk_size)
        self.stream.seek(position, Origin.START)
        return found

    def get_value_count(self, key: str) -> int:
        count = codec.count_values(self.stream, key, self.strict, self.chunk_size)
        if count is None:
            if not self.key_exists(key):
                raise KeyNotFoundError(key)
            raise ValueReadError(f"Malformed values for key {key!r}")
        return count

    # =========================================================================
    # Reads
    # =========================================================================

    def read(self, key: str, value_type: ValueType, count: int = 1) -> Any:
        if not seek_to_key(self.stream, key, self.strict, self.chunk_size):
            raise KeyNotFoundError(key)
        values = codec.read_located_values(self.stream, value_type, count, self.chunk_size)
        if values is None:
            raise ValueReadError(
                f"Cannot read {count} {value_type.value} value(s) for key {key!r}"
            )
        return values

    def read_string(self, key: str) -> str:
        return self.read(key, ValueType.TEXT)

    def read_hex(self, key: str, count: int = 1) -> bytes:
        return bytes(self.read(key, ValueType.HEX, count))

    def read_float(self, key: str, count: int = 1) -> list[float]:
        return self.read(key, ValueType.FLOAT, count)

    def read_int32(self, key: str, count: int = 1) -> list[int]:
        return self.read(key, ValueType.INT32, count)

    def read_uint32(self, key: str, count: int = 1) -> list[int]:
        return self.read(key, ValueType.UINT32, count)

    def read_bool(self, key: str, count: int = 1) -> list[bool]:
        return self.read(key, ValueType.BOOL, count)

    # =========================================================================
    # Writes (at the cursor)
    # =========================================================================

    def write(self, key: str, value_type: ValueType, values: Any) -> None:
        if not codec.write_record(self.stream, codec.WriteRequest(key, value_type, values)):
            raise WriteError(f"Cannot write key {key!r}")

    def write_string(self, key: str, value: str) -> None:
        self.write(key, ValueType.TEXT, value)

    def write_hex(self, key: str, data: bytes) -> None:
        self.write(key, ValueType.HEX, data)

    def write_float(self, key: str, values: Sequence[float]) -> None:
        self.write(key, ValueType.FLOAT, values)

    def write_int32(self, key: str, values: Sequence[int]) -> None:
        self.write(key, ValueType.INT32, values)

    def write_uint32(self, key: str, values: Sequence[int]) -> None:
        self.write(key, ValueType.UINT32, values)

    def write_bool(self, key: str, values: Sequence[bool]) -> None:
        self.write(key, ValueType.BOOL, values)

    def write_comment(self, text: str) -> None:
        if not codec.write_comment(self.stream, text):
            raise WriteError("Cannot write comment")

    # =========================================================================
    # In-place edits
    # =========================================================================

    def update(self, key: str, value_type: ValueType, values: Any) -> None:
        """Rewrite an existing key's record. Raises KeyNotFoundError if absent."""
        request = codec.WriteRequest(key, value_type, values)
        if codec.replace_record(self.stream, request, self.strict, self.chunk_size):
            return
        self.rewind()
        if not self.key_exists(key):
            raise KeyNotFoundError(key)
        raise WriteError(f"Cannot rewrite key {key!r}")

    def insert_or_update(self, key: str, value_type: ValueType, values: Any) -> None:
        """Rewrite key if it exists, otherwise append a new record."""
        self.rewind()
        if self.key_exists(key):
            self.update(key, value_type, values)
        else:
            self.seek_to_end()
            self._terminate_last_line()
            self.write(key, value_type, values)

    def _terminate_last_line(self) -> None:
        """Add a line terminator if the stream ends mid-line."""
        if self.stream.size() == 0:
            return
        self.stream.seek(-1, Origin.END)
        last = self.stream.read(1)
        if last != bytes((EOL,)) and self.stream.write(bytes((EOL,))) != 1:
            raise WriteError("Cannot terminate last line")

    def delete_key(self, key: str) -> None:
        """Remove key's record line."""
        self.update(key, ValueType.IGNORE, None)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def close(self) -> None:
        if isinstance(self.stream, FileStream):
            self.stream.close()

    def __enter__(self) -> KVFile:
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"KVFile(stream={self.stream!r}, strict={self.strict})"
