# Magic and version
HEADER_MAGIC = b"GMAD"   # 4 bytes: "GMAD"
FORMAT_VERSION = 3      # int8

# Fixed values written for fields the format reserves but this tool ignores
REQUIRED_CONTENT = 0    # u8
ADDON_VERSION = 1       # i32
FILE_CRC_UNSET = 0      # u32

# Metadata loop
METADATA_END = 0        # u32 index that terminates the file list
TRAILING_MARKER = 0     # u32 after the last content byte

# Integer bounds for the fixed-width fields
INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1
UINT64_MAX = (1 << 64) - 1

DEFAULT_AUTHOR = "unknown"
DEFAULT_DESCRIPTION = ""

# Content is read in bounded pieces so a bogus declared size cannot force a huge allocation
READ_CHUNK_SIZE = 1_048_576  # 1 MiB

STRING_ENCODING = "utf-8"
