# Magic and layout
MAGIC = 0x5A5A4B31          # "ZZK1"
RESERVED = 0x00000000

HEADER_SIZE = 12            # magic(4) + total_size(4) + reserved(4)
TOTAL_SIZE_OFFSET = 4
CHUNK_HEADER_SIZE = 8       # type(4) + length(4)

# Chunk types
TYPE_TEXT = 0x00000001
TYPE_BINARY = 0x00000002
TYPE_PADDING = 0xFFFFFFFF

U32_MAX = 0xFFFFFFFF
MAX_CHUNK_LENGTH = U32_MAX - CHUNK_HEADER_SIZE

# Text chunks above this are listed but not displayed
DISPLAY_LIMIT = 0x10000000  # 256 MiB

# Metadata buffer capacity, terminator included
METADATA_CAPACITY = 1024

COPY_BUFSIZE = 65536

# Largest relative seek that fits a signed 32-bit offset
MAX_SEEK_STEP = 0x70000000
