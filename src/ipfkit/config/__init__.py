"""Configuration for ipfkit readers."""

from .config import ReaderConfig

__all__ = ["ReaderConfig"]
