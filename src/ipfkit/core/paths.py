"""Path normalization shared by index parsing and lookups."""

from __future__ import annotations

import re

_SEPARATORS = re.compile(r"[\\/]+")


def normalize_path(path: str) -> str:
    """
    Normalize a stored or requested path to forward slashes.

    Backslashes become slashes, repeated separators collapse and leading or
    trailing separators are dropped. Case is preserved.
    """
    return _SEPARATORS.sub("/", path).strip("/")


def path_key(path: str) -> str:
    """Case-insensitive lookup key for a path."""
    return normalize_path(path).lower()


def join_path(directory: str, name: str) -> str:
    if not directory:
        return normalize_path(name)
    return normalize_path(f"{directory}/{name}")


__all__ = ["normalize_path", "path_key", "join_path"]
