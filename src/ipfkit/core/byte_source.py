"""
Random-access byte providers.

Every read goes through ``read_at`` which bounds-checks against the size the
source reports before touching the underlying handle. Sources are not
thread-safe: callers sharing one handle across threads wrap it in
``LockedByteSource`` or open an independent source per thread.
"""

from __future__ import annotations

import io
import os
import threading
from typing import Any, BinaryIO, Optional, Protocol, Union, runtime_checkable

from ipfkit.core.errors import TruncatedError


@runtime_checkable
class ByteSource(Protocol):
    name: str

    @property
    def size(self) -> int: ...

    def read_at(self, offset: int, length: int) -> bytes: ...

    def close(self) -> None: ...


def _check_extent(source: ByteSource, offset: int, length: int) -> None:
    if offset < 0 or length < 0:
        raise ValueError(f"Invalid read: offset={offset}, length={length}")
    if offset + length > source.size:
        raise TruncatedError(
            f"Read past end of {source.name}",
            offset=offset,
            expected=length,
            found=max(0, source.size - offset),
        )


class MemoryByteSource:
    """Byte source over an in-memory buffer."""

    def __init__(self, data: Union[bytes, bytearray, memoryview], name: str = "<memory>") -> None:
        self._data = bytes(data)
        self.name = name

    @property
    def size(self) -> int:
        return len(self._data)

    def read_at(self, offset: int, length: int) -> bytes:
        _check_extent(self, offset, length)
        return self._data[offset : offset + length]

    def close(self) -> None:
        pass

    def __repr__(self) -> str:
        return f"MemoryByteSource(name={self.name!r}, size={self.size})"


class StreamByteSource:
    """
    Byte source over a seekable binary file object.

    The size is captured once at construction. ``owns_stream`` decides whether
    ``close()`` closes the wrapped object.
    """

    def __init__(self, stream: BinaryIO, name: Optional[str] = None, owns_stream: bool = False) -> None:
        if not stream.seekable():
            raise ValueError("Byte source stream must be seekable")
        self._f = stream
        self._owns = owns_stream
        self.name = name or str(getattr(stream, "name", "<stream>"))
        self._f.seek(0, os.SEEK_END)
        self._size = self._f.tell()

    @property
    def size(self) -> int:
        return self._size

    def read_at(self, offset: int, length: int) -> bytes:
        _check_extent(self, offset, length)
        self._f.seek(offset)
        data = self._f.read(length)
        if len(data) != length:
            raise TruncatedError(
                f"Short read from {self.name}",
                offset=offset,
                expected=length,
                found=len(data),
            )
        return data

    def close(self) -> None:
        if self._owns and not self._f.closed:
            self._f.close()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, size={self.size})"


class FileByteSource(StreamByteSource):
    """Byte source that opens (and owns) a file on disk."""

    def __init__(self, path: Union[str, "os.PathLike[str]"]) -> None:
        self.path = os.fspath(path)
        super().__init__(open(self.path, "rb"), name=self.path, owns_stream=True)

    def __enter__(self) -> "FileByteSource":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()


class LockedByteSource:
    """Serializes seek+read on a source shared between threads."""

    def __init__(self, inner: ByteSource) -> None:
        self._inner = inner
        self._lock = threading.Lock()
        self.name = inner.name

    @property
    def size(self) -> int:
        return self._inner.size

    def read_at(self, offset: int, length: int) -> bytes:
        with self._lock:
            return self._inner.read_at(offset, length)

    def close(self) -> None:
        with self._lock:
            self._inner.close()

    def __repr__(self) -> str:
        return f"LockedByteSource({self._inner!r})"


SourceLike = Union[ByteSource, bytes, bytearray, memoryview, str, "os.PathLike[str]", BinaryIO]


def as_byte_source(obj: SourceLike) -> tuple[ByteSource, bool]:
    """
    Coerce ``obj`` into a ByteSource.

    Returns the source and whether it was opened here (and so should be
    closed by whoever called this).
    """
    if isinstance(obj, (bytes, bytearray, memoryview)):
        return MemoryByteSource(obj), True
    if isinstance(obj, (str, os.PathLike)):
        return FileByteSource(obj), True
    if isinstance(obj, ByteSource):
        return obj, False
    if isinstance(obj, io.IOBase) or hasattr(obj, "seek"):
        return StreamByteSource(obj), True  # type: ignore[arg-type]
    raise TypeError(f"Cannot use {type(obj).__name__} as a byte source")


__all__ = [
    "ByteSource",
    "MemoryByteSource",
    "StreamByteSource",
    "FileByteSource",
    "LockedByteSource",
    "SourceLike",
    "as_byte_source",
]
