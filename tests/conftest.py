import struct
import sys
import zlib
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import pytest

# Ensure src/ is on sys.path for local test runs without installation
PROJECT_ROOT = Path(__file__).resolve().parent.parent
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from ipfkit.core.codec import method_for_name, CompressionMethod  # noqa: E402
from ipfkit.core.constants import (  # noqa: E402
    ENTRY_FIXED_STRUCT,
    FOOTER_MAGIC,
    FOOTER_STRUCT,
    IES_COLUMN_STRUCT,
    IES_HEADER_STRUCT,
)


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "unit: fast unit tests")


# (directory, name, payload) plus optional per-entry field overrides
IpfFile = Tuple[str, str, bytes]


def _deflate(data: bytes, level: int) -> bytes:
    compressor = zlib.compressobj(level, zlib.DEFLATED, -zlib.MAX_WBITS)
    return compressor.compress(data) + compressor.flush()


def make_ipf(
    files: Sequence[IpfFile],
    revision: int = 1,
    base_revision: int = 0,
    level: int = 6,
    overrides: Optional[Dict[int, Dict[str, int]]] = None,
) -> bytes:
    """
    Build an IPF archive part in memory.

    ``overrides`` maps an entry number to index fields to replace
    (crc32, compressed_size, uncompressed_size, data_offset).
    """
    overrides = overrides or {}
    out = bytearray()
    records: List[bytes] = []

    for number, (directory, name, data) in enumerate(files):
        if method_for_name(name) == CompressionMethod.STORE:
            packed = data
        else:
            packed = _deflate(data, level)
        fields = {
            "crc32": zlib.crc32(data) & 0xFFFFFFFF,
            "compressed_size": len(packed),
            "uncompressed_size": len(data),
            "data_offset": len(out),
        }
        fields.update(overrides.get(number, {}))
        out += packed

        dir_raw = directory.encode("utf-8")
        name_raw = name.encode("utf-8")
        records.append(
            ENTRY_FIXED_STRUCT.pack(
                len(name_raw),
                fields["crc32"],
                fields["compressed_size"],
                fields["uncompressed_size"],
                fields["data_offset"],
                len(dir_raw),
            )
            + dir_raw
            + name_raw
        )

    index_offset = len(out)
    for record in records:
        out += record
    footer_offset = len(out)
    out += FOOTER_STRUCT.pack(
        len(files),
        index_offset,
        0,
        footer_offset,
        FOOTER_MAGIC,
        base_revision,
        revision,
    )
    return bytes(out)


def encode_text(text: str, width: int, codepage: str = "cp949", mask: int = 0x01) -> bytes:
    """Store ``text`` the way table files do: masked, NUL padded to ``width``."""
    raw = bytes(b ^ mask for b in text.encode(codepage))
    if len(raw) > width:
        raise ValueError(f"{text!r} does not fit in {width} bytes")
    return raw + b"\x00" * (width - len(raw))


# (name, type tag, max width, ordinal)
IesColumn = Tuple[str, int, int, int]


def make_ies(
    columns: Sequence[IesColumn],
    rows: Sequence[Sequence[object]],
    name: str = "table",
    row_count: Optional[int] = None,
    codepage: str = "cp949",
    mask: int = 0x01,
) -> bytes:
    """
    Build a table file. Row values are given in ordinal order of the columns.
    """
    out = bytearray(
        IES_HEADER_STRUCT.pack(
            encode_text(name, 128, codepage, mask),
            len(columns),
            len(rows) if row_count is None else row_count,
        )
    )
    for col_name, type_tag, width, ordinal in columns:
        out += IES_COLUMN_STRUCT.pack(
            encode_text(col_name, 64, codepage, mask),
            encode_text(f"CT_{col_name}", 64, codepage, mask),
            type_tag,
            0,
            width,
            ordinal,
        )

    layout = sorted(columns, key=lambda c: c[3])
    for values in rows:
        for (col_name, type_tag, width, _ordinal), value in zip(layout, values):
            if type_tag == 0:
                out += struct.pack("<i", value)
            elif type_tag == 1:
                out += struct.pack("<f", value)
            else:
                out += encode_text(str(value), width, codepage, mask)
    return bytes(out)


@pytest.fixture
def build_ipf() -> Callable[..., bytes]:
    return make_ipf


@pytest.fixture
def build_ies() -> Callable[..., bytes]:
    return make_ies


@pytest.fixture
def sample_files() -> List[IpfFile]:
    return [
        ("data.ipf", "Data/Item.ies", b"item table bytes " * 20),
        ("data.ipf", "xml/skill.xml", b"<skills><skill id='1'/></skills>"),
        ("data.ipf", "ui/banner.jpg", b"\xff\xd8\xff\xe0 not really a jpeg"),
        ("data.ipf", "empty.txt", b""),
    ]


@pytest.fixture
def sample_ipf(sample_files: List[IpfFile]) -> bytes:
    return make_ipf(sample_files, revision=10, base_revision=9)


@pytest.fixture
def sample_ipf_path(tmp_path: Path, sample_ipf: bytes) -> Path:
    path = tmp_path / "data.ipf"
    path.write_bytes(sample_ipf)
    return path


SAMPLE_COLUMNS: List[IesColumn] = [
    ("ClassID", 0, 0, 0),
    ("Rate", 1, 0, 1),
    ("ClassName", 2, 16, 2),
]

SAMPLE_ROWS: List[List[object]] = [
    [1, 0.5, "Sword"],
    [2, 1.25, "Shield"],
    [3, -2.0, "Potion_HP"],
    [-4, 3.75, ""],
    [2147483647, 100.0, "ExactlySixteen16"],
]


@pytest.fixture
def sample_ies() -> bytes:
    return make_ies(SAMPLE_COLUMNS, SAMPLE_ROWS, name="item")
