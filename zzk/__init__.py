"""
ZZK1 — a minimal append-only chunk archive.

An archive is a 12-byte header (magic, total size, reserved) followed by
type-length-value chunks: UTF-8 text, opaque binary, padding, or any other
tag (skipped for forward compatibility). All integers are big-endian u32.

- Appends rewrite the header's total size last, so an interrupted append
  leaves only uncommitted trailing bytes that the next append overwrites.
- A file shorter than its recorded size is reported as truncated and never
  written to.
- Chunks are addressed by their 1-based position in a left-to-right scan.

Programmatic API lives in zzk.writer (create_archive, append_text,
append_file) and zzk.reader (ArchiveReader, list_archive, extract_chunk).
"""

__version__ = "0.1"

__all__ = [
    "constants",
    "errors",
    "writer",
    "reader",
    "metadata",
]
