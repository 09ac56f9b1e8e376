import io
import json
import logging
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import pytest
import structlog

PROJECT_ROOT = Path(__file__).resolve().parent.parent
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from ipfkit.core import LogicalArchive, MemoryByteSource  # noqa: E402
from ipfkit.core.errors import ChecksumMismatchError  # noqa: E402
from ipfkit.utils.logging import _coerce_level, configure_logging, log_context  # noqa: E402


@contextmanager
def json_logging() -> Iterator[io.StringIO]:
    """Configure JSON logging into a buffer and restore the root logger after."""
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    stream = io.StringIO()
    configure_logging(level="DEBUG", json_output=True, stream=stream)
    try:
        yield stream
    finally:
        structlog.reset_defaults()
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)


def _events(stream: io.StringIO) -> dict:
    records = [json.loads(line) for line in stream.getvalue().splitlines() if line.strip()]
    return {record["event"]: record for record in records}


@pytest.mark.unit
def test_archive_events_are_rendered_as_json(build_ipf) -> None:
    source = MemoryByteSource(build_ipf([("", "a.xml", b"hello")]), name="patch_001.ipf")
    with json_logging() as stream:
        with LogicalArchive.open([source]) as archive:
            archive.read("a.xml")

    events = _events(stream)

    parsed = events["ipf_index_parsed"]
    assert parsed["ipf_part"] == "patch_001.ipf"
    assert parsed["service_name"] == "ipfkit"
    assert parsed["level"] == "debug"
    assert parsed["logger"] == "ipfkit.core.ipf_index"

    opened = events["ipf_archive_opened"]
    assert opened["service_name"] == "ipfkit"
    assert opened["parts"] == ["patch_001.ipf"]
    assert opened["entries"] == 1
    assert "ipf_part" not in opened

    assert events["ipf_entry_read"]["path"] == "a.xml"


@pytest.mark.unit
def test_corruption_is_logged_as_warning(build_ipf) -> None:
    data = build_ipf([("", "a.xml", b"hello")], overrides={0: {"crc32": 0}})
    with json_logging() as stream:
        with LogicalArchive.open([data]) as archive:
            with pytest.raises(ChecksumMismatchError):
                archive.read("a.xml")

    corrupt = _events(stream)["ipf_entry_corrupt"]
    assert corrupt["level"] == "warning"
    assert corrupt["reason"] == "checksum_mismatch"
    assert corrupt["path"] == "a.xml"


@pytest.mark.unit
def test_log_context_restores_previous_values() -> None:
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(ipf_part="outer.ipf")
    try:
        with log_context(ipf_part="inner.ipf", entry="a.xml"):
            ctx = structlog.contextvars.get_contextvars()
            assert ctx["ipf_part"] == "inner.ipf"
            assert ctx["entry"] == "a.xml"
        ctx = structlog.contextvars.get_contextvars()
        assert ctx == {"ipf_part": "outer.ipf"}
    finally:
        structlog.contextvars.clear_contextvars()


@pytest.mark.unit
def test_coerce_level() -> None:
    assert _coerce_level("debug") == 10
    assert _coerce_level(30) == 30
    with pytest.raises(ValueError, match="Invalid log level"):
        _coerce_level("loud")
