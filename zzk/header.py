from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import BinaryIO

from .constants import HEADER_SIZE, MAGIC, RESERVED
from .errors import BadMagicError, ShortHeaderError
from .fields import unpack_u32, write_all


_HEADER_STRUCT = struct.Struct(">III")


@dataclass
class ArchiveHeader:
    total_size: int
    reserved: int = RESERVED
    magic: int = MAGIC

    def is_valid(self) -> bool:
        return self.magic == MAGIC

    def pack(self) -> bytes:
        return _HEADER_STRUCT.pack(self.magic, self.total_size, self.reserved)


def decode_header(f: BinaryIO) -> ArchiveHeader:
    """Read the 12-byte header at the current position.

    Only the magic is checked; reconciling ``total_size`` with the file
    length is the opener's job.
    """
    raw = f.read(HEADER_SIZE)
    if len(raw) < 4:
        raise ShortHeaderError("Archive header too short")
    magic = unpack_u32(raw[:4])
    if magic != MAGIC:
        raise BadMagicError(magic)
    if len(raw) != HEADER_SIZE:
        raise ShortHeaderError("Archive header too short")
    magic, total_size, reserved = _HEADER_STRUCT.unpack(raw)
    return ArchiveHeader(total_size=total_size, reserved=reserved, magic=magic)


def encode_header(header: ArchiveHeader, f: BinaryIO) -> None:
    write_all(f, header.pack())
