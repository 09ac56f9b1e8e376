"""Reader configuration."""

from __future__ import annotations

import codecs
import os
from typing import Any, Union

import yaml
from pydantic import BaseModel, Field, field_validator

from ipfkit.core.constants import DEFAULT_CODEPAGE, DEFAULT_PATH_ENCODING, DEFAULT_STRING_MASK
from ipfkit.core.text import TextDecoder


class ReaderConfig(BaseModel):
    """Text handling options shared by archive and table readers."""

    codepage: str = Field(
        DEFAULT_CODEPAGE,
        description="Legacy codepage used for table text",
    )
    string_mask: int = Field(
        DEFAULT_STRING_MASK,
        description="XOR mask applied to stored table text (0 disables)",
    )
    text_errors: str = Field(
        "strict",
        description="Codec error policy for table text: strict, replace, ignore",
    )
    path_encoding: str = Field(
        DEFAULT_PATH_ENCODING,
        description="Encoding of directory and file names in archive indices",
    )

    @field_validator("codepage", "path_encoding")
    @classmethod
    def _known_encoding(cls, value: str) -> str:
        try:
            codecs.lookup(value)
        except LookupError:
            raise ValueError(f"Unknown encoding: {value}") from None
        return value

    @field_validator("string_mask")
    @classmethod
    def _byte_mask(cls, value: int) -> int:
        if not 0 <= value <= 0xFF:
            raise ValueError(f"string_mask must be in [0, 255], got {value}")
        return value

    @field_validator("text_errors")
    @classmethod
    def _error_policy(cls, value: str) -> str:
        if value not in ("strict", "replace", "ignore", "backslashreplace"):
            raise ValueError(f"Unsupported text error policy: {value}")
        return value

    def text_decoder(self) -> TextDecoder:
        return TextDecoder(self.codepage, self.string_mask, self.text_errors)

    @classmethod
    def from_env(cls) -> "ReaderConfig":
        return cls(
            codepage=os.getenv("IPFKIT_CODEPAGE", DEFAULT_CODEPAGE),
            string_mask=int(os.getenv("IPFKIT_STRING_MASK", str(DEFAULT_STRING_MASK)), 0),
            text_errors=os.getenv("IPFKIT_TEXT_ERRORS", "strict"),
            path_encoding=os.getenv("IPFKIT_PATH_ENCODING", DEFAULT_PATH_ENCODING),
        )

    @classmethod
    def from_yaml(cls, path: Union[str, "os.PathLike[str]"]) -> "ReaderConfig":
        """
        Load from a YAML mapping. A top-level ``ipfkit:`` section is used when
        present, otherwise the whole document.
        """
        with open(path, "r", encoding="utf-8") as f:
            raw: Any = yaml.safe_load(f) or {}
        if not isinstance(raw, dict):
            raise ValueError(f"Config file must contain a mapping: {path}")
        section = raw.get("ipfkit", raw)
        if not isinstance(section, dict):
            raise ValueError(f"'ipfkit' section must be a mapping: {path}")
        return cls(**section)


__all__ = ["ReaderConfig"]
