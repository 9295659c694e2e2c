from __future__ import annotations

import contextlib
import os
from dataclasses import dataclass, field
from typing import BinaryIO, Iterator, List, Optional, Union

from .constants import (
    CHUNK_HEADER_SIZE,
    COPY_BUFSIZE,
    DISPLAY_LIMIT,
    HEADER_SIZE,
    RESERVED,
    TYPE_TEXT,
    U32_MAX,
)
from .errors import (
    ChunkNotFoundError,
    InvalidIndexError,
    OversizedTextWarning,
    ReservedFieldWarning,
    UnexpectedEOFError,
    ZzkWarning,
)
from .fields import read_exact, skip_forward, stream_size, write_all
from .header import ArchiveHeader, decode_header
from .records import read_chunk_header, type_label


@dataclass
class ChunkInfo:
    ordinal: int
    ctype: int
    length: int

    @property
    def label(self) -> str:
        return type_label(self.ctype)


class ChunkIterator:
    """Left-to-right walk over the chunks that follow the header.

    Yields one ChunkInfo per chunk, numbered from 1. Between two steps the
    caller may consume the payload with ``read_payload``/``copy_payload`` or
    drop it with ``skip``; an unconsumed payload is skipped automatically.
    The walk stops at ``limit``. A chunk that claims more bytes than remain
    raises UnexpectedEOFError and ends the iteration. Not restartable.
    """

    def __init__(self, f: BinaryIO, limit: int, *, start: int = HEADER_SIZE):
        self.f = f
        self.limit = limit
        self.ordinal = 0
        self.current: Optional[ChunkInfo] = None
        self._pending = 0
        self._done = False
        f.seek(start)

    def __iter__(self) -> "ChunkIterator":
        return self

    def __next__(self) -> ChunkInfo:
        if self._done:
            raise StopIteration
        try:
            if self._pending:
                self.skip()
            offset = self.f.tell()
            if offset >= self.limit:
                raise StopIteration
            if self.limit - offset < CHUNK_HEADER_SIZE:
                raise UnexpectedEOFError("Unexpected EOF reading chunk header")
            hdr = read_chunk_header(self.f)
            if hdr is None:
                raise StopIteration
        except (StopIteration, UnexpectedEOFError):
            self._done = True
            raise
        self.ordinal += 1
        self._pending = hdr.length
        self.current = ChunkInfo(self.ordinal, hdr.ctype, hdr.length)
        return self.current

    def _claim(self) -> int:
        n = self._pending
        self._pending = 0
        avail = self.limit - self.f.tell()
        if n > avail:
            self._done = True
            raise UnexpectedEOFError(
                f"Unexpected EOF in chunk #{self.ordinal}: wants {n} bytes, {max(avail, 0)} remain"
            )
        return n

    def skip(self) -> None:
        n = self._pending
        self._pending = 0
        try:
            skip_forward(self.f, n, end=self.limit)
        except UnexpectedEOFError:
            self._done = True
            raise

    def read_payload(self) -> bytes:
        return read_exact(self.f, self._claim())

    def copy_payload(self, out: BinaryIO, bufsize: int = COPY_BUFSIZE) -> int:
        """Stream the current payload to ``out`` in bounded blocks; returns bytes copied."""
        remaining = total = self._claim()
        while remaining > 0:
            block = read_exact(self.f, min(bufsize, remaining))
            write_all(out, block)
            remaining -= len(block)
        return total


@dataclass
class ChunkListing:
    ordinal: int
    ctype: int
    length: int
    text: Optional[str] = None
    warning: Optional[ZzkWarning] = None

    @property
    def label(self) -> str:
        return type_label(self.ctype)

    def to_dict(self) -> dict:
        d = {"ordinal": self.ordinal, "type": self.ctype, "label": self.label, "length": self.length}
        if self.text is not None:
            d["text"] = self.text
        if self.warning is not None:
            d["warning"] = str(self.warning)
        return d


@dataclass
class ArchiveInfo:
    path: str
    header: ArchiveHeader
    actual_size: int
    state: str
    chunk_count: int
    type_counts: dict = field(default_factory=dict)
    walk_error: Optional[str] = None


def parse_index(value: Union[str, int]) -> int:
    """Validate a 1-based chunk index given as an int or a decimal string."""
    if isinstance(value, bool):
        raise InvalidIndexError(f"Invalid chunk index '{value}'. Must be a positive integer >= 1.")
    if isinstance(value, int):
        idx = value
    else:
        s = str(value).strip()
        if s.startswith("+"):
            s = s[1:]
        if not (s.isascii() and s.isdigit()):
            raise InvalidIndexError(f"Invalid chunk index '{value}'. Must be a positive integer >= 1.")
        idx = int(s)
    if idx <= 0:
        raise InvalidIndexError(f"Invalid chunk index '{value}'. Must be a positive integer >= 1.")
    return idx


class ArchiveReader:
    """Read-only view of an archive.

    Only committed data is walked: when the file is longer than the header's
    total size the extra tail is reported through ``uncommitted_bytes`` and
    ignored. When it is shorter, the walk runs to the physical end and the
    short chunk surfaces as UnexpectedEOFError.
    """

    def __init__(self, path: Union[str, os.PathLike]):
        self.path = os.fspath(path)
        self.f: Optional[BinaryIO] = None
        self.header: Optional[ArchiveHeader] = None
        self.actual_size: int = 0
        self.warnings: List[ZzkWarning] = []

    def __enter__(self) -> "ArchiveReader":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def open(self) -> None:
        f = open(self.path, "rb")
        try:
            self.header = decode_header(f)
            self.actual_size = stream_size(f)
        except BaseException:
            f.close()
            raise
        self.f = f
        if self.header.reserved != RESERVED:
            self.warnings.append(ReservedFieldWarning(f"reserved field is non-zero ({self.header.reserved})"))

    def close(self) -> None:
        if self.f is not None:
            self.f.close()
            self.f = None

    @property
    def state(self) -> str:
        recorded = self.header.total_size
        if recorded == self.actual_size:
            return "ok"
        if recorded < self.actual_size:
            return "repairable"
        return "truncated"

    @property
    def uncommitted_bytes(self) -> int:
        return max(0, self.actual_size - self.header.total_size)

    @property
    def walk_limit(self) -> int:
        recorded = self.header.total_size
        if HEADER_SIZE <= recorded < self.actual_size:
            return recorded
        return self.actual_size

    def chunks(self) -> ChunkIterator:
        if self.f is None:
            raise RuntimeError("archive is not open")
        return ChunkIterator(self.f, self.walk_limit)

    def list(self, *, display_limit: int = DISPLAY_LIMIT) -> Iterator[ChunkListing]:
        """Yield a ChunkListing per chunk; text chunks within ``display_limit`` carry their decoded content."""
        it = self.chunks()
        for info in it:
            entry = ChunkListing(info.ordinal, info.ctype, info.length)
            if info.ctype == TYPE_TEXT:
                if info.length == U32_MAX or info.length > display_limit:
                    entry.warning = OversizedTextWarning(f"Text chunk too large ({info.length}). Skipping print.")
                    it.skip()
                else:
                    entry.text = it.read_payload().decode("utf-8", errors="replace")
            else:
                it.skip()
            yield entry

    def locate(self, index: Union[str, int]) -> ChunkIterator:
        """Walk to chunk ``index`` (1-based) and return the iterator positioned at its payload."""
        target = parse_index(index)
        it = self.chunks()
        for info in it:
            if info.ordinal == target:
                return it
        raise ChunkNotFoundError(target, it.ordinal)

    def extract(self, index: Union[str, int], out: BinaryIO, *, bufsize: int = COPY_BUFSIZE) -> ChunkInfo:
        """Copy the payload of chunk ``index`` to ``out``."""
        it = self.locate(index)
        it.copy_payload(out, bufsize)
        return it.current


def list_archive(path: Union[str, os.PathLike], *, display_limit: int = DISPLAY_LIMIT) -> List[ChunkListing]:
    with ArchiveReader(path) as r:
        return list(r.list(display_limit=display_limit))


def extract_chunk(
    path: Union[str, os.PathLike],
    index: Union[str, int],
    output_path: Union[str, os.PathLike],
    *,
    bufsize: int = COPY_BUFSIZE,
) -> ChunkInfo:
    """Write the payload of chunk ``index`` to ``output_path``.

    The output file is only created once the chunk is found, and is removed
    again if copying fails.
    """
    target = parse_index(index)
    with ArchiveReader(path) as r:
        it = r.locate(target)
        try:
            with open(output_path, "wb") as out:
                it.copy_payload(out, bufsize)
        except BaseException:
            with contextlib.suppress(OSError):
                os.remove(output_path)
            raise
        return it.current


def inspect_archive(path: Union[str, os.PathLike]) -> ArchiveInfo:
    """Summarize header, real size, health and chunk counts without modifying anything."""
    with ArchiveReader(path) as r:
        counts: dict = {}
        walk_error = None
        it = r.chunks()
        try:
            for info in it:
                counts[info.label] = counts.get(info.label, 0) + 1
        except UnexpectedEOFError as exc:
            walk_error = str(exc)
        return ArchiveInfo(
            path=r.path,
            header=r.header,
            actual_size=r.actual_size,
            state=r.state,
            chunk_count=it.ordinal,
            type_counts=counts,
            walk_error=walk_error,
        )
