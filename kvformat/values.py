"""
Value Codec - Per-type parse and format rules for record values.

    TEXT    rest of the line, verbatim         "hello world"
    HEX     two hex digits per byte, no prefix "0A FF"
    FLOAT   decimal, single precision          "3.140000"
    INT32   signed decimal                     "-42"
    UINT32  unsigned decimal                   "4294967295"
    BOOL    true / false                       "true"
    IGNORE  nothing is written
"""

from __future__ import annotations

import enum
import math
import re
import struct
from typing import Any

INT32_MIN = -(2 ** 31)
INT32_MAX = 2 ** 31 - 1
UINT32_MAX = 2 ** 32 - 1

_HEX_DIGITS = b"0123456789abcdefABCDEF"
_INT_RE = re.compile(rb"[+-]?[0-9]+")
_FLOAT_RE = re.compile(rb"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


class ValueType(enum.Enum):
    TEXT = "text"
    HEX = "hex"
    FLOAT = "float"
    INT32 = "int32"
    UINT32 = "uint32"
    BOOL = "bool"
    IGNORE = "ignore"


def _to_float32(value: float) -> float:
    return struct.unpack("<f", struct.pack("<f", value))[0]


def parse_token(value_type: ValueType, token: bytes) -> Any:
    """
    Decode one value token. Returns None if the bytes don't decode under
    value_type. BOOL never fails: anything but "true" (any case) is False.
    """
    if value_type is ValueType.HEX:
        if len(token) < 2 or token[0] not in _HEX_DIGITS or token[1] not in _HEX_DIGITS:
            return None
        return int(token[:2], 16)

    if value_type is ValueType.FLOAT:
        if not _FLOAT_RE.fullmatch(token):
            return None
        try:
            return _to_float32(float(token))
        except OverflowError:
            return None

    if value_type is ValueType.INT32:
        if not _INT_RE.fullmatch(token):
            return None
        number = int(token)
        return number if INT32_MIN <= number <= INT32_MAX else None

    if value_type is ValueType.UINT32:
        if not _INT_RE.fullmatch(token) or token.startswith(b"-"):
            return None
        number = int(token)
        return number if number <= UINT32_MAX else None

    if value_type is ValueType.BOOL:
        return token.lower() == b"true"

    raise ValueError(f"Unsupported token type: {value_type}")


def _check_range(value_type: ValueType, value: int, low: int, high: int) -> int:
    if not low <= value <= high:
        raise ValueError(f"{value_type.value} value out of range: {value}")
    return value


def format_value(value_type: ValueType, value: Any) -> str:
    """
    Encode one value as it appears in a record line. Raises ValueError for
    a value the matching parse_token() could not read back.
    """
    if value_type is ValueType.TEXT:
        return str(value)
    if value_type is ValueType.HEX:
        return f"{_check_range(value_type, int(value), 0, 0xFF):02X}"
    if value_type is ValueType.FLOAT:
        if not math.isfinite(value):
            raise ValueError(f"float value is not finite: {value}")
        try:
            _to_float32(value)
        except OverflowError:
            raise ValueError(f"float value out of single precision range: {value}") from None
        return f"{value:f}"
    if value_type is ValueType.INT32:
        return f"{_check_range(value_type, int(value), INT32_MIN, INT32_MAX):d}"
    if value_type is ValueType.UINT32:
        return f"{_check_range(value_type, int(value), 0, UINT32_MAX):d}"
    if value_type is ValueType.BOOL:
        return "true" if value else "false"
    raise ValueError(f"Unsupported value type: {value_type}")
