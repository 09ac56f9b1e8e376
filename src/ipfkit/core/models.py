"""
IPF / IES data models and structures.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import TYPE_CHECKING, Iterator, Optional, Union

from ipfkit.core.codec import CompressionMethod
from ipfkit.core.constants import (
    COLUMN_TYPE_FLOAT32,
    COLUMN_TYPE_INT32,
    COLUMN_TYPE_STRING,
    FLOAT32_STRUCT,
    INT32_STRUCT,
)
from ipfkit.core.paths import join_path, path_key

if TYPE_CHECKING:
    from ipfkit.core.byte_source import ByteSource
    from ipfkit.core.text import TextDecoder


@dataclass(frozen=True)
class EntryDescriptor:
    """
    Represents a single packed file in an IPF archive part.

    Attributes:
        directory: Directory (archive) name as stored, e.g. "xml_tool.ipf"
        name: File name as stored, may contain sub-directories
        crc32: CRC32 of the uncompressed bytes
        compressed_size: Bytes occupied in the archive
        uncompressed_size: Bytes after decompression
        data_offset: Absolute offset of the payload in the owning part
        compression: Compression method used for the payload
        revision: Revision of the archive part that produced this entry
    """

    directory: str
    name: str
    crc32: int
    compressed_size: int
    uncompressed_size: int
    data_offset: int
    compression: CompressionMethod
    revision: int

    @property
    def path(self) -> str:
        """Forward-slash logical path (directory + name), original case."""
        return join_path(self.directory, self.name)

    @property
    def key(self) -> str:
        """Case-insensitive lookup key for ``path``."""
        return path_key(self.path)

    @property
    def file_name(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    @property
    def extension(self) -> Optional[str]:
        _, dot, ext = self.file_name.rpartition(".")
        return ext.lower() if dot else None

    @property
    def data_end(self) -> int:
        return self.data_offset + self.compressed_size

    def is_stored(self) -> bool:
        return self.compression == CompressionMethod.STORE

    def __repr__(self) -> str:
        return (
            f"EntryDescriptor(path={self.path!r}, "
            f"size={self.uncompressed_size}, "
            f"compressed={self.compressed_size} [{self.compression.name}], "
            f"rev={self.revision})"
        )


@dataclass(frozen=True)
class ArchiveFooter:
    """
    Parsed IPF footer structure.
    """

    entry_count: int
    index_offset: int
    footer_offset: int
    magic: bytes
    base_revision: int
    revision: int

    def __repr__(self) -> str:
        return (
            f"ArchiveFooter(entries={self.entry_count}, "
            f"index={self.index_offset}:{self.footer_offset}, "
            f"rev={self.base_revision}->{self.revision})"
        )


@dataclass
class ArchiveStats:
    """
    Statistics for a logical archive.
    """

    parts: int
    total_entries: int
    shadowed_entries: int
    compressed_size_bytes: int
    uncompressed_size_bytes: int

    @property
    def compression_ratio(self) -> float:
        """compressed / uncompressed, 0.0 for an empty archive."""
        if self.uncompressed_size_bytes == 0:
            return 0.0
        return self.compressed_size_bytes / self.uncompressed_size_bytes

    def __repr__(self) -> str:
        return (
            f"ArchiveStats(parts={self.parts}, entries={self.total_entries} "
            f"[{self.shadowed_entries} shadowed], "
            f"size={self._human_size(self.uncompressed_size_bytes)}, "
            f"packed={self._human_size(self.compressed_size_bytes)})"
        )

    @staticmethod
    def _human_size(size_bytes: float) -> str:
        """Format bytes as human-readable string."""
        for unit in ["B", "KB", "MB", "GB", "TB"]:
            if size_bytes < 1024:
                return f"{size_bytes:.1f}{unit}"
            size_bytes /= 1024
        return f"{size_bytes:.1f}PB"


class ColumnType(IntEnum):
    INT32 = COLUMN_TYPE_INT32
    FLOAT32 = COLUMN_TYPE_FLOAT32
    STRING = COLUMN_TYPE_STRING


CellValue = Union[int, float, str]


@dataclass(frozen=True)
class ColumnDefinition:
    """
    One column of a table schema.

    Attributes:
        name: Column name
        alias: Secondary name stored next to it (often "CT_" + name)
        type: Declared primitive type
        max_width: Stored byte width for STRING columns (0 otherwise)
        ordinal: Position in the row layout
    """

    name: str
    alias: str
    type: ColumnType
    max_width: int
    ordinal: int

    @property
    def width(self) -> int:
        """Bytes this column occupies in every row."""
        if self.type == ColumnType.INT32:
            return INT32_STRUCT.size
        if self.type == ColumnType.FLOAT32:
            return FLOAT32_STRUCT.size
        return self.max_width


@dataclass(frozen=True)
class TableSchema:
    """
    Parsed IES header and column layout.

    ``columns`` is in row-layout order. ``data_offset`` is where the first row
    starts; every row is ``row_size`` bytes long.
    """

    name: str
    columns: tuple[ColumnDefinition, ...]
    row_count: int
    data_offset: int
    _positions: dict[str, int] = field(init=False, repr=False, compare=False)

    @classmethod
    def parse(cls, source: "ByteSource", text_decoder: Optional["TextDecoder"] = None) -> "TableSchema":
        """Parse a table header; see ``ipfkit.core.ies_schema.parse_schema``."""
        from ipfkit.core.ies_schema import parse_schema

        return parse_schema(source, text_decoder)

    def __post_init__(self) -> None:
        positions: dict[str, int] = {}
        for pos, column in enumerate(self.columns):
            positions.setdefault(column.name, pos)
        object.__setattr__(self, "_positions", positions)

    @property
    def row_size(self) -> int:
        return sum(column.width for column in self.columns)

    @property
    def column_names(self) -> list[str]:
        return [column.name for column in self.columns]

    @property
    def data_size(self) -> int:
        return self.row_size * self.row_count

    def row_offset(self, index: int) -> int:
        return self.data_offset + index * self.row_size

    def position(self, name: str) -> int:
        """Layout position of the column called ``name``."""
        try:
            return self._positions[name]
        except KeyError:
            raise KeyError(f"No such column: {name}") from None

    def __len__(self) -> int:
        return len(self.columns)


@dataclass(frozen=True)
class Row:
    """One decoded table row, values aligned to the schema's columns."""

    index: int
    values: tuple[CellValue, ...]
    schema: TableSchema = field(repr=False, compare=False)

    def __getitem__(self, item: Union[int, str]) -> CellValue:
        if isinstance(item, str):
            return self.values[self.schema.position(item)]
        return self.values[item]

    def __iter__(self) -> Iterator[CellValue]:
        return iter(self.values)

    def __len__(self) -> int:
        return len(self.values)

    def as_dict(self) -> dict[str, CellValue]:
        return dict(zip(self.schema.column_names, self.values))
