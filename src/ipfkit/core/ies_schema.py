"""TableSchema parsing for IES table files."""

from __future__ import annotations

from typing import Optional

from ipfkit.core.byte_source import ByteSource
from ipfkit.core.constants import (
    IES_COLUMN_NAME_SIZE,
    IES_COLUMN_SIZE,
    IES_COLUMN_STRUCT,
    IES_HEADER_SIZE,
    IES_HEADER_STRUCT,
)
from ipfkit.core.errors import TruncatedError, UnknownColumnTypeError
from ipfkit.core.models import ColumnDefinition, ColumnType, TableSchema
from ipfkit.core.text import TextDecoder
from ipfkit.utils.logging import get_logger

logger = get_logger(__name__)


def parse_schema(source: ByteSource, text_decoder: Optional[TextDecoder] = None) -> TableSchema:
    """
    Parse the header and column definitions of a table file.

    Column definitions are reordered by their ordinal (stable for ties); that
    order is the row layout. Row data is not read here.

    Raises:
        TruncatedError: header or column block runs past the source
        UnknownColumnTypeError: a column declares an unknown type tag
    """
    decoder = text_decoder or TextDecoder()

    if source.size < IES_HEADER_SIZE:
        raise TruncatedError(
            f"{source.name} is too small to hold a table header",
            offset=0,
            expected=IES_HEADER_SIZE,
            found=source.size,
        )
    raw_name, column_count, row_count = IES_HEADER_STRUCT.unpack(
        source.read_at(0, IES_HEADER_SIZE)
    )
    name = decoder.decode(raw_name, offset=0)

    columns_end = IES_HEADER_SIZE + column_count * IES_COLUMN_SIZE
    if columns_end > source.size:
        raise TruncatedError(
            f"Table header declares {column_count} columns but the source ends first",
            offset=IES_HEADER_SIZE,
            expected=columns_end - IES_HEADER_SIZE,
            found=source.size - IES_HEADER_SIZE,
        )

    block = source.read_at(IES_HEADER_SIZE, column_count * IES_COLUMN_SIZE)
    columns = []
    for number in range(column_count):
        start = number * IES_COLUMN_SIZE
        raw_col_name, raw_alias, type_tag, _reserved, max_width, ordinal = IES_COLUMN_STRUCT.unpack_from(
            block, start
        )
        at = IES_HEADER_SIZE + start
        try:
            column_type = ColumnType(type_tag)
        except ValueError:
            raise UnknownColumnTypeError(
                f"Column #{number} has unknown type tag",
                offset=at + 2 * IES_COLUMN_NAME_SIZE,
                expected=[t.value for t in ColumnType],
                found=type_tag,
            ) from None

        columns.append(
            ColumnDefinition(
                name=decoder.decode(raw_col_name, offset=at),
                alias=decoder.decode(raw_alias, offset=at + IES_COLUMN_NAME_SIZE),
                type=column_type,
                max_width=max_width if column_type == ColumnType.STRING else 0,
                ordinal=ordinal,
            )
        )

    columns.sort(key=lambda c: c.ordinal)
    schema = TableSchema(
        name=name,
        columns=tuple(columns),
        row_count=row_count,
        data_offset=columns_end,
    )
    logger.debug(
        "ies_schema_parsed",
        source=source.name,
        table=name,
        columns=len(columns),
        rows=row_count,
        row_size=schema.row_size,
    )
    return schema


__all__ = ["parse_schema"]
