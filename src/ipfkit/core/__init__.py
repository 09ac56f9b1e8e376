"""IPF archive and IES table core functionality."""

from .byte_source import (
    ByteSource,
    FileByteSource,
    LockedByteSource,
    MemoryByteSource,
    StreamByteSource,
)
from .codec import CompressionMethod
from .errors import (
    ArchiveLookupError,
    ChecksumMismatchError,
    CorruptionError,
    EntryNotFoundError,
    EntryOutOfRangeError,
    FormatError,
    InvalidFooterError,
    IpfKitError,
    OutOfBoundsError,
    SizeMismatchError,
    TextDecodeError,
    TruncatedError,
    UnknownColumnTypeError,
)
from .ies_reader import TableReader
from .ies_schema import parse_schema
from .ipf_index import ArchiveIndex
from .ipf_reader import ArchiveReader, EntryHandle, LogicalArchive, merge_indices
from .models import (
    ArchiveStats,
    ColumnDefinition,
    ColumnType,
    EntryDescriptor,
    Row,
    TableSchema,
)
from .text import TextDecoder

__all__ = [
    "ByteSource",
    "FileByteSource",
    "MemoryByteSource",
    "StreamByteSource",
    "LockedByteSource",
    "CompressionMethod",
    "TextDecoder",
    "ArchiveIndex",
    "LogicalArchive",
    "ArchiveReader",
    "EntryHandle",
    "merge_indices",
    "EntryDescriptor",
    "ArchiveStats",
    "ColumnType",
    "ColumnDefinition",
    "TableSchema",
    "Row",
    "parse_schema",
    "TableReader",
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
