"""Exceptions raised by KVFile."""


class KVFormatError(ValueError):
    """Base class for KV file errors."""


class KeyNotFoundError(KVFormatError, KeyError):
    """Key is absent, or a strict lookup hit another key first."""

    def __init__(self, key: str) -> None:
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"Key not found: {self.key!r}"


class ValueReadError(KVFormatError):
    """Key was found but its values are malformed, of the wrong count, or don't parse."""


class WriteError(KVFormatError):
    """A record could not be written or rewritten."""


class HeaderError(KVFormatError):
    """File header is missing or describes a different file type or version."""
