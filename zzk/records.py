from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import BinaryIO, Optional, Union

from .constants import (
    CHUNK_HEADER_SIZE,
    MAX_CHUNK_LENGTH,
    TYPE_BINARY,
    TYPE_PADDING,
    TYPE_TEXT,
)
from .errors import InvalidTextError, SizeOverflowError, UnexpectedEOFError


# Chunk header (fixed 8 bytes, big-endian)
#  - type u32
#  - length u32 (payload bytes that follow)
_CHUNK_HDR_STRUCT = struct.Struct(">II")

_TYPE_LABELS = {
    TYPE_TEXT: "text",
    TYPE_BINARY: "binary",
    TYPE_PADDING: "padding",
}


def type_label(ctype: int) -> str:
    return _TYPE_LABELS.get(ctype, "unknown")


@dataclass
class ChunkHeader:
    ctype: int
    length: int

    def pack(self) -> bytes:
        if self.length > MAX_CHUNK_LENGTH:
            raise SizeOverflowError(f"Chunk length {self.length} exceeds the 32-bit size field")
        return _CHUNK_HDR_STRUCT.pack(self.ctype, self.length)

    @property
    def stored_size(self) -> int:
        return CHUNK_HEADER_SIZE + self.length


def read_chunk_header(f: BinaryIO) -> Optional[ChunkHeader]:
    """Read the next chunk header; None at a clean end of stream.

    A header cut short by end of stream raises UnexpectedEOFError.
    """
    raw = f.read(CHUNK_HEADER_SIZE)
    if not raw:
        return None
    if len(raw) != CHUNK_HEADER_SIZE:
        what = "chunk length" if len(raw) >= 4 else "chunk type"
        raise UnexpectedEOFError(f"Unexpected EOF reading {what}")
    ctype, length = _CHUNK_HDR_STRUCT.unpack(raw)
    return ChunkHeader(ctype=ctype, length=length)


@dataclass
class ChunkSource:
    """A chunk waiting to be written: header fields plus where the payload comes from.

    ``payload`` is either in-memory bytes or a readable binary stream that
    must yield at least ``length`` bytes.
    """
    ctype: int
    length: int
    payload: Union[bytes, BinaryIO] = b""

    @classmethod
    def from_bytes(cls, ctype: int, data: bytes) -> "ChunkSource":
        return cls(ctype=ctype, length=len(data), payload=data)

    @classmethod
    def text(cls, text: Union[str, bytes]) -> "ChunkSource":
        if not isinstance(text, str):
            return cls.from_bytes(TYPE_TEXT, bytes(text))
        try:
            data = text.encode("utf-8")
        except UnicodeEncodeError as exc:
            raise InvalidTextError(
                f"Text chunks hold UTF-8; text has an unencodable character at position {exc.start}"
            ) from None
        return cls.from_bytes(TYPE_TEXT, data)

    @property
    def header(self) -> ChunkHeader:
        return ChunkHeader(self.ctype, self.length)

    def check(self) -> None:
        if self.length < 0:
            raise ValueError("chunk length must be non-negative")
        if self.length > MAX_CHUNK_LENGTH:
            raise SizeOverflowError(f"Chunk payload of {self.length} bytes is too large (overflow risk)")
        if isinstance(self.payload, (bytes, bytearray, memoryview)) and len(self.payload) != self.length:
            raise ValueError(f"payload is {len(self.payload)} bytes, header says {self.length}")

