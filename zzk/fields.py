from __future__ import annotations

import os
import struct
from typing import BinaryIO

from .constants import MAX_SEEK_STEP, U32_MAX
from .errors import ShortWriteError, SizeOverflowError, UnexpectedEOFError


_U32 = struct.Struct(">I")


def pack_u32(value: int) -> bytes:
    if not 0 <= value <= U32_MAX:
        raise SizeOverflowError(f"value {value} does not fit a 32-bit field")
    return _U32.pack(value)


def unpack_u32(raw: bytes) -> int:
    return _U32.unpack(raw)[0]


def read_exact(f: BinaryIO, n: int) -> bytes:
    b = f.read(n)
    if len(b) != n:
        raise UnexpectedEOFError(f"Unexpected EOF: wanted {n} bytes, got {len(b)}")
    return b


def write_all(f: BinaryIO, data: bytes) -> None:
    if not data:
        return
    written = f.write(data)
    if written is not None and written != len(data):
        raise ShortWriteError(f"Short write: {written} of {len(data)} bytes")


def read_u32(f: BinaryIO) -> int:
    return unpack_u32(read_exact(f, _U32.size))


def write_u32(f: BinaryIO, value: int) -> None:
    write_all(f, pack_u32(value))


def checked_add_u32(a: int, b: int) -> int:
    """Add two u32 quantities, raising when the sum leaves the 32-bit range."""
    if a > U32_MAX - b:
        raise SizeOverflowError("Archive size overflow (exceeds 4 GiB limit)")
    return a + b


def stream_size(f: BinaryIO) -> int:
    """True byte length of the storage behind ``f``."""
    try:
        return os.fstat(f.fileno()).st_size
    except (AttributeError, OSError, ValueError):
        pos = f.tell()
        end = f.seek(0, os.SEEK_END)
        f.seek(pos)
        return end


def skip_forward(f: BinaryIO, n: int, *, end: int | None = None) -> None:
    """Advance ``f`` by ``n`` bytes using bounded relative seeks.

    When ``end`` is given, a skip that would pass it raises
    UnexpectedEOFError and leaves the stream at ``end``.
    """
    if n < 0:
        raise ValueError("skip length must be non-negative")
    if end is not None:
        avail = end - f.tell()
        if n > avail:
            f.seek(end)
            raise UnexpectedEOFError(f"Unexpected EOF: chunk wants {n} bytes, {max(avail, 0)} remain")
    while n > 0:
        step = min(n, MAX_SEEK_STEP)
        f.seek(step, os.SEEK_CUR)
        n -= step
