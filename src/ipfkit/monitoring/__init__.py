"""
Monitoring utilities for ipfkit.
"""

from ipfkit.monitoring.metrics import (
    CORRUPT_ENTRIES,
    ENTRIES_READ,
    ENTRY_BYTES_INFLATED,
    TABLE_ROWS_DECODED,
)

__all__ = [
    "ENTRIES_READ",
    "ENTRY_BYTES_INFLATED",
    "CORRUPT_ENTRIES",
    "TABLE_ROWS_DECODED",
]
