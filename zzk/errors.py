class ZzkError(Exception):
    """Base class for archive errors."""


# Header/format
class FormatError(ZzkError, ValueError):
    pass


class BadMagicError(FormatError):
    def __init__(self, magic: int):
        super().__init__(f"Invalid magic number 0x{magic:08X}")
        self.magic = magic


class ShortHeaderError(FormatError):
    pass


class TruncatedArchiveError(ZzkError):
    def __init__(self, header_size: int, actual_size: int):
        super().__init__(
            f"Truncated archive: file is smaller than header claims (header {header_size}, actual {actual_size})"
        )
        self.header_size = header_size
        self.actual_size = actual_size


# Size accounting
class SizeOverflowError(ZzkError, OverflowError):
    pass


# Reading
class UnexpectedEOFError(ZzkError, EOFError):
    pass


class ChunkNotFoundError(ZzkError, LookupError):
    def __init__(self, index: int, count: int):
        super().__init__(f"Chunk #{index} not found (archive has {count} chunk(s))")
        self.index = index
        self.count = count


class InvalidIndexError(ZzkError, ValueError):
    pass


class InvalidTextError(ZzkError, ValueError):
    pass


# I/O
class ShortWriteError(ZzkError, OSError):
    pass


class ZzkWarning(UserWarning):
    """Base class for non-fatal conditions reported alongside a result."""


class ReservedFieldWarning(ZzkWarning):
    pass


class SizeMismatchRepaired(ZzkWarning):
    pass


class MetadataTruncated(ZzkWarning):
    pass


class OversizedTextWarning(ZzkWarning):
    pass
