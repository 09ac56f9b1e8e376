"""TableReader: lazy row iteration over an IES table."""

from __future__ import annotations

import csv
import os
from typing import Any, Callable, Iterator, Optional, TextIO, Union

from ipfkit.core.byte_source import ByteSource, FileByteSource
from ipfkit.core.constants import FLOAT32_STRUCT, INT32_STRUCT
from ipfkit.core.errors import TruncatedError
from ipfkit.core.ies_schema import parse_schema
from ipfkit.core.models import CellValue, ColumnType, Row, TableSchema
from ipfkit.core.text import TextDecoder
from ipfkit.monitoring.metrics import TABLE_ROWS_DECODED
from ipfkit.utils.logging import get_logger

logger = get_logger(__name__)

# (row buffer, field position, field width, row offset in source)
_FieldDecoder = Callable[[bytes, int, int, int], CellValue]


class TableReader:
    """
    Reader for one table file.

    The schema is parsed on construction. ``rows()`` returns a fresh
    generator each call; rows are located by ``data_offset + i * row_size``
    so any row can be read without replaying the ones before it.
    """

    def __init__(
        self,
        source: ByteSource,
        schema: Optional[TableSchema] = None,
        text_decoder: Optional[TextDecoder] = None,
        owns_source: bool = False,
    ) -> None:
        self.source = source
        self.text_decoder = text_decoder or TextDecoder()
        self.schema = schema or parse_schema(source, self.text_decoder)
        self._owns = owns_source
        self._layout = self._build_layout(self.schema)

    @classmethod
    def open(
        cls,
        path: Union[str, "os.PathLike[str]"],
        text_decoder: Optional[TextDecoder] = None,
    ) -> "TableReader":
        source = FileByteSource(path)
        try:
            return cls(source, text_decoder=text_decoder, owns_source=True)
        except Exception:
            source.close()
            raise

    def _build_layout(self, schema: TableSchema) -> list[tuple[int, int, _FieldDecoder]]:
        layout = []
        pos = 0
        for column in schema.columns:
            layout.append((pos, column.width, self._field_decoder(column.type)))
            pos += column.width
        return layout

    def _field_decoder(self, column_type: ColumnType) -> _FieldDecoder:
        if column_type == ColumnType.INT32:
            return lambda buf, at, width, base: INT32_STRUCT.unpack_from(buf, at)[0]
        if column_type == ColumnType.FLOAT32:
            return lambda buf, at, width, base: FLOAT32_STRUCT.unpack_from(buf, at)[0]
        decode = self.text_decoder.decode
        return lambda buf, at, width, base: decode(buf[at : at + width], offset=base + at)

    def row(self, index: int) -> Row:
        """
        Decode row ``index`` directly.

        Raises:
            IndexError: index outside the declared row count
            TruncatedError: the row's bytes are not all present
        """
        schema = self.schema
        if not 0 <= index < schema.row_count:
            raise IndexError(f"Row index {index} out of range (0..{schema.row_count - 1})")

        start = schema.row_offset(index)
        size = schema.row_size
        if start + size > self.source.size:
            logger.warning(
                "ies_row_truncated",
                source=self.source.name,
                row_index=index,
                row_count=schema.row_count,
            )
            raise TruncatedError(
                f"Row {index} of {schema.row_count} runs past the end of {self.source.name}",
                row_index=index,
                offset=start,
                expected=size,
                found=max(0, self.source.size - start),
            )

        buf = self.source.read_at(start, size)
        values = tuple(decode(buf, at, width, start) for at, width, decode in self._layout)
        TABLE_ROWS_DECODED.inc()
        return Row(index=index, values=values, schema=schema)

    def rows(self) -> Iterator[Row]:
        """
        Yield every declared row in file order.

        A truncated row raises ``TruncatedError`` at that row; rows already
        yielded stay valid. Calling again starts over from row 0.
        """
        for index in range(self.schema.row_count):
            yield self.row(index)

    def __iter__(self) -> Iterator[Row]:
        return self.rows()

    def __len__(self) -> int:
        return self.schema.row_count

    def to_csv(self, stream: TextIO, **fmtparams: Any) -> int:
        """Write a header of column names then every row. Returns rows written."""
        writer = csv.writer(stream, **fmtparams)
        writer.writerow(self.schema.column_names)
        count = 0
        for row in self.rows():
            writer.writerow(row.values)
            count += 1
        return count

    def close(self) -> None:
        if self._owns:
            self.source.close()

    def __enter__(self) -> "TableReader":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"TableReader(source={self.source.name!r}, table={self.schema.name!r}, "
            f"columns={len(self.schema)}, rows={self.schema.row_count})"
        )


def rows(source: ByteSource, schema: TableSchema, text_decoder: Optional[TextDecoder] = None) -> Iterator[Row]:
    """Iterate the rows of ``source`` laid out by an already parsed ``schema``."""
    return TableReader(source, schema=schema, text_decoder=text_decoder).rows()


__all__ = ["TableReader", "rows"]
