"""Prometheus metrics for archive and table reads."""

from prometheus_client import Counter

# Counters
ENTRIES_READ = Counter(
    "ipfkit_entries_read_total",
    "Archive entries decompressed and verified",
    ["method"],
)
ENTRY_BYTES_INFLATED = Counter(
    "ipfkit_entry_bytes_inflated_total",
    "Total uncompressed bytes returned from archive entries",
)
CORRUPT_ENTRIES = Counter(
    "ipfkit_corrupt_entries_total",
    "Archive entries that failed verification",
    ["reason"],
)
TABLE_ROWS_DECODED = Counter(
    "ipfkit_table_rows_decoded_total",
    "Table rows decoded",
)

__all__ = [
    "ENTRIES_READ",
    "ENTRY_BYTES_INFLATED",
    "CORRUPT_ENTRIES",
    "TABLE_ROWS_DECODED",
]
