"""Decompression and checksum primitives for archive entries."""

from __future__ import annotations

import zlib
from enum import IntEnum
from typing import Mapping, Optional, Protocol

from ipfkit.core.constants import STORED_EXTENSIONS


class CompressionMethod(IntEnum):
    STORE = 0
    DEFLATE = 8


class CodecError(Exception):
    """Raised by a codec when the payload cannot be decoded."""


class Codec(Protocol):
    method: CompressionMethod

    def decode(self, data: bytes) -> bytes:
        """Return the decoded payload; length is checked by the caller."""
        ...


class StoreCodec:
    method = CompressionMethod.STORE

    def decode(self, data: bytes) -> bytes:
        return data


class DeflateCodec:
    """Raw deflate stream (no zlib header)."""

    method = CompressionMethod.DEFLATE

    def decode(self, data: bytes) -> bytes:
        inflater = zlib.decompressobj(-zlib.MAX_WBITS)
        try:
            out = inflater.decompress(data)
        except zlib.error as exc:
            raise CodecError(str(exc)) from exc
        # a cut stream inflates to a short prefix; CRC and size checks catch it
        return out


CodecMap = Mapping[CompressionMethod, Codec]


def default_codecs() -> dict[CompressionMethod, Codec]:
    """Fresh method -> codec mapping with the built-in codecs."""
    return {
        CompressionMethod.STORE: StoreCodec(),
        CompressionMethod.DEFLATE: DeflateCodec(),
    }


def get_codec(method: CompressionMethod, codecs: Optional[CodecMap] = None) -> Codec:
    table = default_codecs() if codecs is None else codecs
    try:
        return table[method]
    except KeyError:
        raise ValueError(f"No codec registered for compression method {method!r}") from None


def method_for_name(name: str) -> CompressionMethod:
    """Compression method the archive uses for a file with this name."""
    _, dot, ext = name.rpartition(".")
    if dot and ext.lower() in STORED_EXTENSIONS:
        return CompressionMethod.STORE
    return CompressionMethod.DEFLATE


def crc32(data: bytes) -> int:
    return zlib.crc32(data) & 0xFFFFFFFF


__all__ = [
    "CompressionMethod",
    "CodecError",
    "Codec",
    "StoreCodec",
    "DeflateCodec",
    "get_codec",
    "CodecMap",
    "default_codecs",
    "method_for_name",
    "crc32",
]
