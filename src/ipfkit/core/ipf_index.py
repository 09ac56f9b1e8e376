"""ArchiveIndex: footer-anchored directory of one IPF archive part."""

from __future__ import annotations

import os
from typing import Iterator, Optional, Union

from ipfkit.core.byte_source import ByteSource, FileByteSource
from ipfkit.core.codec import method_for_name
from ipfkit.core.constants import (
    DEFAULT_PATH_ENCODING,
    ENTRY_FIXED_SIZE,
    ENTRY_FIXED_STRUCT,
    FOOTER_MAGIC,
    FOOTER_SIZE,
    FOOTER_STRUCT,
)
from ipfkit.core.errors import (
    FormatError,
    InvalidFooterError,
    OutOfBoundsError,
    TruncatedError,
)
from ipfkit.core.models import ArchiveFooter, EntryDescriptor
from ipfkit.core.paths import path_key
from ipfkit.utils.logging import get_logger

logger = get_logger(__name__)


class ArchiveIndex:
    """
    Parsed index of a single archive part.

    Parsing reads the 24-byte footer and the index table it points at; entry
    payloads are never touched. The index keeps a reference to its source so
    entries can be read later, but does not own it.
    """

    def __init__(
        self,
        source: ByteSource,
        footer: ArchiveFooter,
        entries: list[EntryDescriptor],
    ) -> None:
        self.source = source
        self.footer = footer
        self._entries = tuple(entries)

    @classmethod
    def parse(
        cls,
        source: ByteSource,
        path_encoding: str = DEFAULT_PATH_ENCODING,
    ) -> "ArchiveIndex":
        footer = cls._read_footer(source)
        entries = list(cls._read_entries(source, footer, path_encoding))
        logger.debug(
            "ipf_index_parsed",
            source=source.name,
            entries=len(entries),
            base_revision=footer.base_revision,
            revision=footer.revision,
        )
        return cls(source, footer, entries)

    @classmethod
    def open(
        cls,
        path: Union[str, "os.PathLike[str]"],
        path_encoding: str = DEFAULT_PATH_ENCODING,
    ) -> "ArchiveIndex":
        """Parse the archive at ``path``; the caller closes ``index.source``."""
        source = FileByteSource(path)
        try:
            return cls.parse(source, path_encoding)
        except Exception:
            source.close()
            raise

    @staticmethod
    def _read_footer(source: ByteSource) -> ArchiveFooter:
        size = source.size
        if size < FOOTER_SIZE:
            raise TruncatedError(
                f"{source.name} is too small to hold an IPF footer",
                offset=0,
                expected=FOOTER_SIZE,
                found=size,
            )

        footer_start = size - FOOTER_SIZE
        (
            entry_count,
            index_offset,
            _reserved,
            footer_offset,
            magic,
            base_revision,
            revision,
        ) = FOOTER_STRUCT.unpack(source.read_at(footer_start, FOOTER_SIZE))

        if magic != FOOTER_MAGIC:
            raise InvalidFooterError(
                "Invalid IPF footer magic. Not an IPF archive?",
                offset=footer_start + 12,
                expected=FOOTER_MAGIC,
                found=magic,
            )
        if footer_offset != footer_start:
            raise InvalidFooterError(
                "IPF footer is not where it says it is",
                offset=footer_start + 8,
                expected=footer_start,
                found=footer_offset,
            )
        if index_offset > footer_start:
            raise OutOfBoundsError(
                "Index table starts after the footer",
                offset=footer_start + 2,
                expected=f"<= {footer_start}",
                found=index_offset,
            )

        return ArchiveFooter(
            entry_count=entry_count,
            index_offset=index_offset,
            footer_offset=footer_offset,
            magic=magic,
            base_revision=base_revision,
            revision=revision,
        )

    @staticmethod
    def _read_entries(
        source: ByteSource,
        footer: ArchiveFooter,
        path_encoding: str,
    ) -> Iterator[EntryDescriptor]:
        pos = footer.index_offset
        end = footer.footer_offset

        def take(length: int, what: str) -> bytes:
            nonlocal pos
            if pos + length > end:
                raise TruncatedError(
                    f"Index table ends inside {what}",
                    offset=pos,
                    expected=length,
                    found=end - pos,
                )
            data = source.read_at(pos, length)
            pos += length
            return data

        def text(raw: bytes, at: int) -> str:
            try:
                return raw.decode(path_encoding)
            except UnicodeDecodeError as exc:
                raise FormatError(
                    f"Entry name is not valid {path_encoding}",
                    offset=at + exc.start,
                    found=raw,
                ) from None

        for number in range(footer.entry_count):
            record_start = pos
            (
                name_len,
                crc,
                compressed_size,
                uncompressed_size,
                data_offset,
                dir_len,
            ) = ENTRY_FIXED_STRUCT.unpack(take(ENTRY_FIXED_SIZE, f"entry #{number}"))
            dir_at = pos
            directory = text(take(dir_len, f"directory name of entry #{number}"), dir_at)
            name_at = pos
            name = text(take(name_len, f"file name of entry #{number}"), name_at)

            if data_offset + compressed_size > footer.index_offset:
                raise OutOfBoundsError(
                    f"Entry #{number} ({directory}/{name}) overruns the index table",
                    offset=record_start,
                    expected=f"<= {footer.index_offset}",
                    found=data_offset + compressed_size,
                )

            yield EntryDescriptor(
                directory=directory,
                name=name,
                crc32=crc,
                compressed_size=compressed_size,
                uncompressed_size=uncompressed_size,
                data_offset=data_offset,
                compression=method_for_name(name),
                revision=footer.revision,
            )

    @property
    def entries(self) -> tuple[EntryDescriptor, ...]:
        return self._entries

    @property
    def entry_count(self) -> int:
        return len(self._entries)

    @property
    def base_revision(self) -> int:
        return self.footer.base_revision

    @property
    def revision(self) -> int:
        return self.footer.revision

    @property
    def footer_offset(self) -> int:
        return self.footer.footer_offset

    def find(self, path: str) -> Optional[EntryDescriptor]:
        """Last entry in this part whose path matches ``path`` (case-insensitive)."""
        key = path_key(path)
        match = None
        for entry in self._entries:
            if entry.key == key:
                match = entry
        return match

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[EntryDescriptor]:
        return iter(self._entries)

    def __repr__(self) -> str:
        return f"ArchiveIndex(source={self.source.name!r}, {self.footer!r})"
