"""kvformat - Line-oriented typed key-value text format over seekable streams."""

from kvformat.codec import (
    WriteRequest,
    count_values,
    read_located_values,
    read_values,
    replace_record,
    write_comment,
    write_record,
)
from kvformat.errors import (
    HeaderError,
    KeyNotFoundError,
    KVFormatError,
    ValueReadError,
    WriteError,
)
from kvformat.file import KVFile
from kvformat.scanner import scan_next_key, seek_to_key
from kvformat.stream import FileStream, MemoryStream, Origin, Stream
from kvformat.values import ValueType

__version__ = "1.0.0"

__all__ = [
    "FileStream",
    "HeaderError",
    "KVFile",
    "KVFormatError",
    "KeyNotFoundError",
    "MemoryStream",
    "Origin",
    "Stream",
    "ValueReadError",
    "ValueType",
    "WriteError",
    "WriteRequest",
    "count_values",
    "read_located_values",
    "read_values",
    "replace_record",
    "scan_next_key",
    "seek_to_key",
    "write_comment",
    "write_record",
]
