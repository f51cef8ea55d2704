"""
KV Streams - Seekable byte resources the codec reads and writes against.

Two backends:
  - MemoryStream: bytearray in memory, handy for tests and small blobs
  - FileStream: an open binary file handle, edited in place

Both support splice(): delete a byte range at the cursor and insert new
bytes in its place, shifting the tail. The replacement is staged first, so
a failing producer leaves the stream untouched.
"""

from __future__ import annotations

import abc
import builtins
import enum
import os
from pathlib import Path
from typing import BinaryIO, Callable

Producer = Callable[["Stream"], bool]


class Origin(enum.Enum):
    """Reference point for Stream.seek()."""

    START = 0
    CURRENT = 1
    END = 2


class Stream(abc.ABC):
    """
    Sequential, seekable byte resource.

    read() returning b"" means end of stream. write() returns the number of
    bytes written; callers treat anything short as a failure. seek() returns
    False instead of moving outside [0, size].
    """

    @abc.abstractmethod
    def read(self, size: int) -> bytes: ...

    @abc.abstractmethod
    def write(self, data: bytes) -> int: ...

    @abc.abstractmethod
    def tell(self) -> int: ...

    @abc.abstractmethod
    def size(self) -> int: ...

    @abc.abstractmethod
    def _replace(self, position: int, delete_length: int, data: bytes) -> None:
        """Swap data in for [position, position + delete_length)."""

    def seek(self, offset: int, origin: Origin = Origin.START) -> bool:
        if origin is Origin.START:
            target = offset
        elif origin is Origin.CURRENT:
            target = self.tell() + offset
        else:
            target = self.size() + offset

        if target < 0 or target > self.size():
            return False
        self._set_position(target)
        return True

    @abc.abstractmethod
    def _set_position(self, position: int) -> None: ...

    def eof(self) -> bool:
        return self.tell() >= self.size()

    def rewind(self) -> bool:
        return self.seek(0, Origin.START)

    def splice(self, delete_length: int, producer: Producer) -> bool:
        """
        Remove delete_length bytes at the cursor and insert what producer
        writes in their place. The cursor ends right after the inserted bytes.

        Returns False, with content and cursor unchanged, if the range runs
        past the end of the stream or the producer fails.
        """
        position = self.tell()
        if delete_length < 0 or position + delete_length > self.size():
            return False

        staging = MemoryStream()
        if not producer(staging):
            return False

        data = staging.getvalue()
        self._replace(position, delete_length, data)
        self._set_position(position + len(data))
        return True


class MemoryStream(Stream):
    """Stream over an in-memory bytearray."""

    def __init__(self, initial: bytes = b"") -> None:
        self._data = bytearray(initial)
        self._position = 0

    def read(self, size: int) -> bytes:
        chunk = bytes(self._data[self._position:self._position + size])
        self._position += len(chunk)
        return chunk

    def write(self, data: bytes) -> int:
        end = self._position + len(data)
        self._data[self._position:end] = data
        self._position = end
        return len(data)

    def tell(self) -> int:
        return self._position

    def size(self) -> int:
        return len(self._data)

    def _set_position(self, position: int) -> None:
        self._position = position

    def _replace(self, position: int, delete_length: int, data: bytes) -> None:
        self._data[position:position + delete_length] = data

    def getvalue(self) -> bytes:
        return bytes(self._data)

    def __repr__(self) -> str:
        return f"MemoryStream(size={self.size()}, position={self._position})"


class FileStream(Stream):
    """
    Stream over an open binary file handle (opened for reading and writing).

    Usage:
        with FileStream.open("settings.kvf", create=True) as stream:
            stream.write(b"Filetype: Settings\\n")
    """

    def __init__(self, handle: BinaryIO) -> None:
        self._handle = handle

    @classmethod
    def open(cls, path: str | Path, create: bool = False) -> FileStream:
        """Open an existing file, or create (truncate) it when create=True."""
        mode = "w+b" if create else "r+b"
        return cls(builtins.open(path, mode))

    def read(self, size: int) -> bytes:
        return self._handle.read(size)

    def write(self, data: bytes) -> int:
        written = self._handle.write(data)
        return len(data) if written is None else written

    def tell(self) -> int:
        return self._handle.tell()

    def size(self) -> int:
        self._handle.flush()
        return os.fstat(self._handle.fileno()).st_size

    def _set_position(self, position: int) -> None:
        self._handle.seek(position, os.SEEK_SET)

    def _replace(self, position: int, delete_length: int, data: bytes) -> None:
        self._handle.seek(position + delete_length, os.SEEK_SET)
        tail = self._handle.read()
        self._handle.seek(position, os.SEEK_SET)
        self._handle.write(data)
        self._handle.write(tail)
        self._handle.truncate()
        self._handle.flush()

    def flush(self) -> None:
        self._handle.flush()

    def close(self) -> None:
        self._handle.close()

    @property
    def closed(self) -> bool:
        return self._handle.closed

    def __enter__(self) -> FileStream:
        return self

    def __exit__(self, *args) -> None:
        self.close()
