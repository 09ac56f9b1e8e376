"""Legacy codepage text conversion for table files."""

from __future__ import annotations

import codecs
from typing import Optional

from ipfkit.core.constants import DEFAULT_CODEPAGE, DEFAULT_STRING_MASK
from ipfkit.core.errors import TextDecodeError

_ERROR_POLICIES = ("strict", "replace", "ignore", "backslashreplace")


class TextDecoder:
    """
    Single point of conversion from stored table text to ``str``.

    Stored fields are NUL padded and each byte is XOR-masked (``mask=0``
    turns masking off) before the codepage is applied.
    """

    def __init__(
        self,
        codepage: str = DEFAULT_CODEPAGE,
        mask: int = DEFAULT_STRING_MASK,
        errors: str = "strict",
    ) -> None:
        try:
            codecs.lookup(codepage)
        except LookupError:
            raise ValueError(f"Unknown codepage: {codepage!r}") from None
        if not 0 <= mask <= 0xFF:
            raise ValueError(f"Mask must fit in one byte: {mask}")
        if errors not in _ERROR_POLICIES:
            raise ValueError(f"Unsupported error policy: {errors!r}")
        self.codepage = codepage
        self.mask = mask
        self.errors = errors
        self._table = bytes(b ^ mask for b in range(256))

    def decode(self, raw: bytes, offset: Optional[int] = None) -> str:
        """Decode one stored field. ``offset`` only feeds error context."""
        end = raw.find(b"\x00")
        if end >= 0:
            raw = raw[:end]
        if self.mask:
            raw = raw.translate(self._table)
        try:
            return raw.decode(self.codepage, self.errors)
        except UnicodeDecodeError as exc:
            raise TextDecodeError(
                f"Text is not valid {self.codepage}",
                offset=None if offset is None else offset + exc.start,
                found=raw[exc.start : exc.end],
            ) from exc

    def __repr__(self) -> str:
        return f"TextDecoder(codepage={self.codepage!r}, mask=0x{self.mask:02x}, errors={self.errors!r})"


__all__ = ["TextDecoder"]
