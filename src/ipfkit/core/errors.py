"""Exception hierarchy for IPF archives and IES tables."""

from __future__ import annotations

from typing import Any, Optional


class IpfKitError(Exception):
    """Base class for every error raised by ipfkit."""


class FormatError(IpfKitError, ValueError):
    """
    Structural problem in an archive or table file.

    Attributes:
        offset: Byte offset where the problem was detected (if known)
        expected: What the parser expected to find
        found: What it found instead
    """

    def __init__(
        self,
        message: str,
        *,
        offset: Optional[int] = None,
        expected: Any = None,
        found: Any = None,
    ) -> None:
        details = []
        if offset is not None:
            details.append(f"offset={offset}")
        if expected is not None:
            details.append(f"expected={expected!r}")
        if found is not None:
            details.append(f"found={found!r}")
        full = f"{message} ({', '.join(details)})" if details else message
        super().__init__(full)
        self.offset = offset
        self.expected = expected
        self.found = found


class TruncatedError(FormatError):
    """The source ends before the structure it declares."""

    def __init__(self, message: str, *, row_index: Optional[int] = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.row_index = row_index


class InvalidFooterError(FormatError):
    """Archive footer has the wrong magic or shape."""


class OutOfBoundsError(FormatError):
    """A declared extent points past the data that holds it."""


class UnknownColumnTypeError(FormatError):
    """Table column carries a type tag we do not understand."""


class TextDecodeError(FormatError):
    """Stored text is not valid in the configured codepage."""


class ArchiveLookupError(IpfKitError, LookupError):
    """Index or path query that matched nothing."""


class EntryOutOfRangeError(ArchiveLookupError, IndexError):
    pass


class EntryNotFoundError(ArchiveLookupError, KeyError):
    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message
        return str(self.args[0]) if self.args else ""


class CorruptionError(IpfKitError):
    """
    Payload-level damage found after reading an entry.

    Attributes:
        path: Logical path of the damaged entry
    """

    def __init__(self, message: str, *, path: str, expected: Any, found: Any) -> None:
        super().__init__(f"{message}: {path} (expected={expected!r}, found={found!r})")
        self.path = path
        self.expected = expected
        self.found = found


class ChecksumMismatchError(CorruptionError):
    pass


class SizeMismatchError(CorruptionError):
    pass


__all__ = [
    "IpfKitError",
    "FormatError",
    "TruncatedError",
    "InvalidFooterError",
    "OutOfBoundsError",
    "UnknownColumnTypeError",
    "TextDecodeError",
    "ArchiveLookupError",
    "EntryOutOfRangeError",
    "EntryNotFoundError",
    "CorruptionError",
    "ChecksumMismatchError",
    "SizeMismatchError",
]
