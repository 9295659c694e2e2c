from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import BinaryIO, Iterable, List, Optional, Union

from .constants import (
    COPY_BUFSIZE,
    HEADER_SIZE,
    MAX_CHUNK_LENGTH,
    METADATA_CAPACITY,
    RESERVED,
    TOTAL_SIZE_OFFSET,
    TYPE_BINARY,
    TYPE_TEXT,
)
from .errors import (
    FormatError,
    MetadataTruncated,
    ReservedFieldWarning,
    SizeMismatchRepaired,
    SizeOverflowError,
    TruncatedArchiveError,
    UnexpectedEOFError,
    ZzkWarning,
)
from .fields import checked_add_u32, stream_size, write_all, write_u32
from .header import ArchiveHeader, decode_header, encode_header
from .metadata import build_file_metadata
from .records import ChunkSource


@dataclass
class AppendResult:
    path: str
    previous_size: int
    total_size: int
    chunks_written: int
    warnings: List[ZzkWarning] = field(default_factory=list)


def _sync(f: BinaryIO) -> None:
    f.flush()
    os.fsync(f.fileno())


def _planned_total(baseline: int, sources: List[ChunkSource]) -> int:
    """Validate every chunk and return the new total size, before any byte is written."""
    total = baseline
    for src in sources:
        src.check()
        total = checked_add_u32(total, src.header.stored_size)
    return total


def _write_chunk(f: BinaryIO, src: ChunkSource, bufsize: int = COPY_BUFSIZE) -> None:
    write_all(f, src.header.pack())
    payload = src.payload
    if isinstance(payload, (bytes, bytearray, memoryview)):
        write_all(f, bytes(payload))
        return
    remaining = src.length
    while remaining > 0:
        block = payload.read(min(bufsize, remaining))
        if not block:
            raise UnexpectedEOFError(
                f"Source ended {remaining} bytes short of its declared length ({src.length} bytes)"
            )
        write_all(f, block)
        remaining -= len(block)


class ArchiveWriter:
    """Append handle on an existing archive.

    Opening validates the header and reconciles its recorded total size
    with the real file length:

    - equal: append at end of file;
    - file longer: the tail is uncommitted data from an interrupted append;
      writes start at the recorded size and overwrite it;
    - file shorter: the archive was truncated and cannot be appended to.

    Warnings raised while opening are collected in ``warnings``.
    """

    def __init__(self, path: Union[str, os.PathLike], *, bufsize: int = COPY_BUFSIZE):
        self.path = os.fspath(path)
        self.bufsize = bufsize
        self.f: Optional[BinaryIO] = None
        self.header: Optional[ArchiveHeader] = None
        self.actual_size: int = 0
        self.baseline: int = 0
        self.warnings: List[ZzkWarning] = []

    def __enter__(self) -> "ArchiveWriter":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def open(self) -> None:
        f = open(self.path, "rb+")
        try:
            header = decode_header(f)
            if header.reserved != RESERVED:
                self.warnings.append(ReservedFieldWarning(f"reserved field is non-zero ({header.reserved})"))
            recorded = header.total_size
            if recorded < HEADER_SIZE:
                raise FormatError(f"Header total size ({recorded}) is smaller than the header itself")
            actual = stream_size(f)
            if actual < recorded:
                raise TruncatedArchiveError(recorded, actual)
            if actual > recorded:
                self.warnings.append(
                    SizeMismatchRepaired(
                        f"header Total Size ({recorded}) != actual file size ({actual}); "
                        f"overwriting {actual - recorded} byte(s) of uncommitted trailing data"
                    )
                )
            f.seek(recorded)
        except BaseException:
            f.close()
            raise
        self.f = f
        self.header = header
        self.actual_size = actual
        self.baseline = recorded

    def close(self) -> None:
        if self.f is not None:
            self.f.close()
            self.f = None

    def append(self, sources: Iterable[ChunkSource]) -> AppendResult:
        """Write ``sources`` in order as one commit and rewrite the header's total size.

        Sizes are checked up front, so an overflow leaves the archive untouched.
        """
        if self.f is None:
            raise RuntimeError("archive is not open")
        sources = list(sources)
        new_total = _planned_total(self.baseline, sources)

        f = self.f
        f.seek(self.baseline)
        for src in sources:
            _write_chunk(f, src, self.bufsize)
        _sync(f)
        # Drop whatever stale tail the new chunks did not overwrite
        f.truncate(new_total)

        f.seek(TOTAL_SIZE_OFFSET)
        write_u32(f, new_total)
        f.seek(0, os.SEEK_END)
        _sync(f)

        result = AppendResult(
            path=self.path,
            previous_size=self.baseline,
            total_size=new_total,
            chunks_written=len(sources),
            warnings=list(self.warnings),
        )
        # Opening warnings belong to the first commit only
        self.warnings = []
        self.baseline = new_total
        self.actual_size = new_total
        self.header.total_size = new_total
        return result


def create_archive(path: Union[str, os.PathLike], text: Union[str, bytes]) -> AppendResult:
    """Create (or overwrite) an archive holding a header and one text chunk."""
    src = ChunkSource.text(text)
    total = _planned_total(HEADER_SIZE, [src])
    path = os.fspath(path)
    with open(path, "wb") as f:
        encode_header(ArchiveHeader(total_size=total), f)
        _write_chunk(f, src)
        _sync(f)
    return AppendResult(path=path, previous_size=0, total_size=total, chunks_written=1)


def append_text(path: Union[str, os.PathLike], text: Union[str, bytes]) -> AppendResult:
    with ArchiveWriter(path) as w:
        return w.append([ChunkSource.text(text)])


def append_stream(
    path: Union[str, os.PathLike],
    stream: BinaryIO,
    length: int,
    name: str,
    description: str,
    *,
    capacity: int = METADATA_CAPACITY,
) -> AppendResult:
    """Append a metadata text chunk followed by ``length`` bytes of ``stream`` as a binary chunk."""
    if length > MAX_CHUNK_LENGTH:
        raise SizeOverflowError(f"Source of {length} bytes is too large for the 32-bit size field")
    meta = build_file_metadata(name, description, length, capacity=capacity)
    warnings: List[ZzkWarning] = []
    if meta.truncated:
        warnings.append(MetadataTruncated(f"metadata truncated to {meta.used} bytes"))
    with ArchiveWriter(path) as w:
        result = w.append(
            [
                ChunkSource.from_bytes(TYPE_TEXT, meta.getvalue()),
                ChunkSource(TYPE_BINARY, length, stream),
            ]
        )
    result.warnings = warnings + result.warnings
    return result


def append_file(
    path: Union[str, os.PathLike],
    source_path: Union[str, os.PathLike],
    description: str,
    *,
    name: Optional[str] = None,
    capacity: int = METADATA_CAPACITY,
) -> AppendResult:
    """Attach the file at ``source_path``; its metadata names it ``name`` (default: the path as given)."""
    with open(source_path, "rb") as src:
        length = stream_size(src)
        label = name if name is not None else os.fspath(source_path)
        return append_stream(path, src, length, label, description, capacity=capacity)
