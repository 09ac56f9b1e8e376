"""LogicalArchive: one namespace over several stacked IPF archive parts."""

from __future__ import annotations

import os
from typing import Any, Iterable, Iterator, NamedTuple, Optional, Sequence, Union

from ipfkit.config.config import ReaderConfig
from ipfkit.core.byte_source import ByteSource, MemoryByteSource, SourceLike, as_byte_source
from ipfkit.core.codec import (
    Codec,
    CodecError,
    CodecMap,
    CompressionMethod,
    crc32,
    default_codecs,
    get_codec,
)
from ipfkit.core.errors import (
    ChecksumMismatchError,
    EntryNotFoundError,
    EntryOutOfRangeError,
    SizeMismatchError,
)
from ipfkit.core.ies_reader import TableReader
from ipfkit.core.ipf_index import ArchiveIndex
from ipfkit.core.models import ArchiveStats, EntryDescriptor
from ipfkit.core.paths import path_key
from ipfkit.monitoring.metrics import CORRUPT_ENTRIES, ENTRIES_READ, ENTRY_BYTES_INFLATED
from ipfkit.utils.logging import get_logger, log_context

logger = get_logger(__name__)


class _Slot(NamedTuple):
    entry: EntryDescriptor
    part: int


def merge_indices(indices: Sequence[ArchiveIndex]) -> dict[str, _Slot]:
    """
    Overlay archive parts into a single key -> entry mapping.

    Parts are applied in the given order. An incoming entry replaces the
    stored one when its revision is greater than or equal to it, so higher
    revisions win and equal revisions fall back to "last loaded wins". A
    replaced key keeps the position of its first insertion.
    """
    merged: dict[str, _Slot] = {}
    for part, index in enumerate(indices):
        for entry in index.entries:
            key = entry.key
            current = merged.get(key)
            if current is None or entry.revision >= current.entry.revision:
                merged[key] = _Slot(entry, part)
    return merged


class EntryHandle:
    """
    Lazy view of one entry. Nothing is read until ``read()`` is called.

    Valid only while the archive it came from is open.
    """

    def __init__(self, entry: EntryDescriptor, source: ByteSource, archive: "LogicalArchive") -> None:
        self.entry = entry
        self.source = source
        self._archive = archive

    @property
    def path(self) -> str:
        return self.entry.path

    @property
    def size(self) -> int:
        return self.entry.uncompressed_size

    def read(self) -> bytes:
        """
        Decompress and verify the payload.

        Raises:
            ChecksumMismatchError: payload does not inflate or fails CRC32
            SizeMismatchError: payload verifies but has the wrong length
            TruncatedError: the source is shorter than the entry claims
        """
        entry = self.entry
        raw = self.source.read_at(entry.data_offset, entry.compressed_size)
        codec = self._archive.codec_for(entry.compression)

        try:
            data = codec.decode(raw)
        except CodecError as exc:
            self._corrupt("inflate_failed", error=str(exc))
            raise ChecksumMismatchError(
                f"Payload does not inflate ({exc})",
                path=entry.path,
                expected=f"{entry.crc32:08x}",
                found=None,
            ) from exc

        actual_crc = crc32(data)
        if actual_crc != entry.crc32:
            self._corrupt("checksum_mismatch", expected=entry.crc32, found=actual_crc)
            raise ChecksumMismatchError(
                "CRC32 mismatch",
                path=entry.path,
                expected=f"{entry.crc32:08x}",
                found=f"{actual_crc:08x}",
            )

        if len(data) != entry.uncompressed_size:
            self._corrupt("size_mismatch", expected=entry.uncompressed_size, found=len(data))
            raise SizeMismatchError(
                "Decompressed size mismatch",
                path=entry.path,
                expected=entry.uncompressed_size,
                found=len(data),
            )

        ENTRIES_READ.labels(method=entry.compression.name.lower()).inc()
        ENTRY_BYTES_INFLATED.inc(len(data))
        logger.debug(
            "ipf_entry_read",
            path=entry.path,
            source=self.source.name,
            size=len(data),
        )
        return data

    def open_table(self) -> TableReader:
        """Parse the payload as an IES table using the archive's text settings."""
        source = MemoryByteSource(self.read(), name=self.entry.path)
        return TableReader(source, text_decoder=self._archive.config.text_decoder())

    def _corrupt(self, reason: str, **context: Any) -> None:
        CORRUPT_ENTRIES.labels(reason=reason).inc()
        logger.warning(
            "ipf_entry_corrupt",
            reason=reason,
            path=self.entry.path,
            source=self.source.name,
            **context,
        )

    def __repr__(self) -> str:
        return f"EntryHandle({self.entry!r})"


class LogicalArchive:
    """
    Merged, read-only view of one or more archive parts.

    The merged index is built once in ``open`` and never changes afterwards,
    so it may be read from several threads. Reading payloads seeks the owning
    source; sharing one source between threads needs ``LockedByteSource``.
    """

    def __init__(
        self,
        indices: Sequence[ArchiveIndex],
        config: Optional[ReaderConfig] = None,
        owned_sources: Iterable[ByteSource] = (),
        codecs: Optional[CodecMap] = None,
    ) -> None:
        self.config = config or ReaderConfig()
        self._codecs = default_codecs()
        self._codecs.update(codecs or {})
        self.indices: tuple[ArchiveIndex, ...] = tuple(indices)
        self._owned = list(owned_sources)
        self._by_key = merge_indices(self.indices)
        self._order = list(self._by_key)
        self._closed = False

    @classmethod
    def open(
        cls,
        sources: Iterable[SourceLike],
        config: Optional[ReaderConfig] = None,
        codecs: Optional[CodecMap] = None,
    ) -> "LogicalArchive":
        """
        Open archive parts in load order (usually ascending patch order).

        Accepts ByteSource objects, paths, raw bytes or seekable binary
        files. Sources opened here are closed with the archive. ``codecs``
        overrides the built-in codec per compression method for this archive
        only.
        """
        config = config or ReaderConfig()
        owned: list[ByteSource] = []
        indices: list[ArchiveIndex] = []
        try:
            for obj in sources:
                source, opened = as_byte_source(obj)
                if opened:
                    owned.append(source)
                with log_context(ipf_part=source.name):
                    indices.append(ArchiveIndex.parse(source, config.path_encoding))
        except Exception:
            for source in owned:
                source.close()
            raise

        archive = cls(indices, config=config, owned_sources=owned, codecs=codecs)
        logger.info(
            "ipf_archive_opened",
            parts=[index.source.name for index in indices],
            entries=archive.entry_count(),
        )
        return archive

    @classmethod
    def open_paths(
        cls,
        *paths: Union[str, "os.PathLike[str]"],
        config: Optional[ReaderConfig] = None,
        codecs: Optional[CodecMap] = None,
    ) -> "LogicalArchive":
        return cls.open(paths, config=config, codecs=codecs)

    def codec_for(self, method: CompressionMethod) -> Codec:
        return get_codec(method, self._codecs)

    def entry_count(self) -> int:
        return len(self._order)

    def is_empty(self) -> bool:
        return not self._order

    def by_index(self, index: int) -> EntryHandle:
        if not 0 <= index < len(self._order):
            raise EntryOutOfRangeError(
                f"Entry index {index} out of range (0..{len(self._order) - 1})"
            )
        return self._handle(self._by_key[self._order[index]])

    def by_path(self, path: str) -> EntryHandle:
        slot = self._by_key.get(path_key(path))
        if slot is None:
            raise EntryNotFoundError(f"File not found: {path}")
        return self._handle(slot)

    def read(self, path: str) -> bytes:
        return self.by_path(path).read()

    def path_of(self, index: int) -> str:
        return self.by_index(index).path

    def paths(self) -> list[str]:
        return [self._by_key[key].entry.path for key in self._order]

    def entries(self) -> list[EntryDescriptor]:
        return [self._by_key[key].entry for key in self._order]

    def get_stats(self) -> ArchiveStats:
        """
        Get archive statistics.

        Returns:
            ArchiveStats for the visible (merged) entries
        """
        visible = self.entries()
        return ArchiveStats(
            parts=len(self.indices),
            total_entries=len(visible),
            shadowed_entries=sum(len(index) for index in self.indices) - len(visible),
            compressed_size_bytes=sum(e.compressed_size for e in visible),
            uncompressed_size_bytes=sum(e.uncompressed_size for e in visible),
        )

    def _handle(self, slot: _Slot) -> EntryHandle:
        return EntryHandle(slot.entry, self.indices[slot.part].source, self)

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and path_key(path) in self._by_key

    def __len__(self) -> int:
        return len(self._order)

    def __iter__(self) -> Iterator[EntryHandle]:
        for key in self._order:
            yield self._handle(self._by_key[key])

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        for source in self._owned:
            source.close()

    def __enter__(self) -> "LogicalArchive":
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc: Optional[BaseException],
        tb: Any,
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"LogicalArchive(parts={len(self.indices)}, entries={self.entry_count()})"


ArchiveReader = LogicalArchive

__all__ = ["LogicalArchive", "ArchiveReader", "EntryHandle", "merge_indices"]
