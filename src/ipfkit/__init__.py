"""ipfkit - read-only access to IPF archives and IES tables."""

__version__ = "0.1.0"

from .core import (  # noqa: E402
    ArchiveIndex,
    ArchiveReader,
    ChecksumMismatchError,
    CorruptionError,
    EntryNotFoundError,
    EntryOutOfRangeError,
    FormatError,
    LogicalArchive,
    MemoryByteSource,
    FileByteSource,
    TableReader,
    TableSchema,
    TextDecoder,
)
from .config import ReaderConfig  # noqa: E402

__all__ = [
    "LogicalArchive",
    "ArchiveReader",
    "ArchiveIndex",
    "TableReader",
    "TableSchema",
    "TextDecoder",
    "ReaderConfig",
    "MemoryByteSource",
    "FileByteSource",
    "FormatError",
    "CorruptionError",
    "ChecksumMismatchError",
    "EntryNotFoundError",
    "EntryOutOfRangeError",
]
