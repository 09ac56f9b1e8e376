"""
IPF / IES format constants, magic numbers, and struct layouts.
"""
import struct

# IPF footer: entry_count(2) + index_offset(4) + reserved(2) + footer_offset(4)
#             + signature(4) + base_revision(4) + revision(4) = 24 bytes
FOOTER_MAGIC = b"PK\x05\x06"
FOOTER_STRUCT = struct.Struct("<HIHI4sII")
FOOTER_SIZE = FOOTER_STRUCT.size  # 24 bytes

# Index record fixed part: name_len(2) + crc32(4) + compressed(4)
#                          + uncompressed(4) + data_offset(4) + dir_len(2) = 20 bytes
# Followed by directory name bytes, then file name bytes.
ENTRY_FIXED_STRUCT = struct.Struct("<HIIIIH")
ENTRY_FIXED_SIZE = ENTRY_FIXED_STRUCT.size  # 20 bytes

# Extensions that are stored as-is instead of deflated
STORED_EXTENSIONS = frozenset({"jpg", "fsb", "mp3"})

# Default text settings
DEFAULT_PATH_ENCODING = "utf-8"
DEFAULT_CODEPAGE = "cp949"
DEFAULT_STRING_MASK = 0x01

# IES header: name(128) + column_count(2) + row_count(2) = 132 bytes
IES_NAME_SIZE = 128
IES_HEADER_STRUCT = struct.Struct("<128sHH")
IES_HEADER_SIZE = IES_HEADER_STRUCT.size  # 132 bytes

# IES column: name(64) + alias(64) + type(1) + reserved(1) + max_width(2) + ordinal(2)
IES_COLUMN_NAME_SIZE = 64
IES_COLUMN_STRUCT = struct.Struct("<64s64sBBHH")
IES_COLUMN_SIZE = IES_COLUMN_STRUCT.size  # 134 bytes

# IES column type tags
COLUMN_TYPE_INT32 = 0
COLUMN_TYPE_FLOAT32 = 1
COLUMN_TYPE_STRING = 2

INT32_STRUCT = struct.Struct("<i")
FLOAT32_STRUCT = struct.Struct("<f")
