from __future__ import annotations

import sys
import argparse
import json as _json

from typing import List, Iterable

from zzk.constants import DISPLAY_LIMIT, TYPE_BINARY, TYPE_PADDING, TYPE_TEXT
from zzk.errors import ZzkError, ZzkWarning
from zzk.reader import ArchiveReader, extract_chunk, inspect_archive, parse_index
from zzk.writer import append_file, append_text, create_archive


_RULE = "-" * 40


def _print_warnings(warnings: Iterable[ZzkWarning]) -> None:
    for w in warnings:
        print(f"Warning: {w}", file=sys.stderr)


def cmd_create(archive: str, text: str) -> bool:
    """Create a new archive holding one text chunk.

    Args:
        archive: Path of the archive to write (overwritten if present).
        text: Initial text content.
    """
    create_archive(archive, text)
    print(f"Archive created: {archive}")
    return True


def cmd_append(archive: str, text: str) -> bool:
    """Append a text chunk to an existing archive."""
    res = append_text(archive, text)
    _print_warnings(res.warnings)
    print(f"Appended text to: {archive}")
    return True


def cmd_append_file(archive: str, target: str, description: str) -> bool:
    """Append a metadata chunk and the contents of ``target`` as a binary chunk.

    Args:
        archive: Path to an existing archive.
        target: File whose bytes are stored.
        description: Free text stored in the metadata chunk.
    """
    res = append_file(archive, target, description)
    _print_warnings(res.warnings)
    print(f"Appended file '{target}' to: {archive}")
    return True


def cmd_extract(archive: str, index: str, output: str) -> bool:
    """Write the payload of chunk ``index`` (1-based) to ``output``."""
    target = parse_index(index)
    info = extract_chunk(archive, target, output)
    print(f"Extracted Chunk #{info.ordinal} (Type {info.ctype}, {info.length} bytes) to '{output}'")
    return True


def cmd_list(archive: str, *, max_display: int = DISPLAY_LIMIT, as_json: bool = False) -> bool:
    """List every chunk; text chunks are printed in full.

    Chunks preceding a damaged one are always printed before the error is
    raised.
    """
    with ArchiveReader(archive) as r:
        _print_warnings(r.warnings)
        if r.uncommitted_bytes:
            print(
                f"Warning: {r.uncommitted_bytes} byte(s) of uncommitted data after recorded size "
                f"{r.header.total_size}; ignored.",
                file=sys.stderr,
            )
        if as_json:
            items = [e.to_dict() for e in r.list(display_limit=max_display)]
            print(_json.dumps({"archive": archive, "total_size": r.header.total_size, "chunks": items}))
            return True

        print(f"File: {archive} (Size: {r.header.total_size})")
        print(_RULE)
        for e in r.list(display_limit=max_display):
            print(f"Chunk #{e.ordinal}: Type={e.ctype}, Length={e.length} bytes")
            if e.ctype == TYPE_TEXT:
                if e.warning is not None:
                    _print_warnings([e.warning])
                else:
                    print(f"Content:\n{e.text}")
            elif e.ctype == TYPE_BINARY:
                print("[Binary Data - Skipped]")
            elif e.ctype == TYPE_PADDING:
                print("[Padding - Skipped]")
            else:
                print("[Unknown Type - Skipped]")
            print(_RULE)
    return True


def cmd_info(archive: str) -> bool:
    """Show header fields, real size and health of an archive."""
    info = inspect_archive(archive)
    print(f"Archive: {info.path}")
    print(f"  Magic: 0x{info.header.magic:08X}")
    print(f"  Recorded size: {info.header.total_size}")
    print(f"  Actual size: {info.actual_size}")
    print(f"  Reserved: {info.header.reserved}")
    print(f"  State: {info.state}")
    print(f"  Chunks: {info.chunk_count}")
    for label in sorted(info.type_counts):
        print(f"    {label}: {info.type_counts[label]}")
    if info.walk_error:
        print(f"Warning: {info.walk_error}", file=sys.stderr)
    return True


def main(argv: List[str] | None = None):
    ap = argparse.ArgumentParser(
        prog="zzk",
        description="ZZK1 append-only chunk archive tool",
    )
    sub = ap.add_subparsers(dest="cmd", required=True)

    ap_create = sub.add_parser("create", help="Create an archive with an initial text chunk")
    ap_create.add_argument("archive", help="Archive path")
    ap_create.add_argument("text", help="Initial text")

    ap_append = sub.add_parser("append", help="Append a text chunk")
    ap_append.add_argument("archive", help="Archive path")
    ap_append.add_argument("text", help="Text to append")

    ap_append_file = sub.add_parser("append-file", help="Append a file with a metadata chunk")
    ap_append_file.add_argument("archive", help="Archive path")
    ap_append_file.add_argument("file", help="File to store")
    ap_append_file.add_argument("description", help="Description stored in the metadata chunk")

    ap_extract = sub.add_parser("extract", help="Write one chunk's payload to a file")
    ap_extract.add_argument("archive", help="Archive path")
    ap_extract.add_argument("chunk_index", help="1-based chunk number")
    ap_extract.add_argument("output", help="Output file")

    ap_list = sub.add_parser("list", help="List chunks")
    ap_list.add_argument("archive", help="Archive path")
    ap_list.add_argument(
        "--max-display",
        type=int,
        default=DISPLAY_LIMIT,
        help=f"Largest text chunk to print, in bytes (default {DISPLAY_LIMIT})",
    )
    ap_list.add_argument("--json", action="store_true", help="Emit JSON")

    ap_info = sub.add_parser("info", help="Show archive header and health")
    ap_info.add_argument("archive", help="Archive path")

    args = ap.parse_args(argv)
    try:
        if args.cmd == "create":
            cmd_create(args.archive, args.text)
        elif args.cmd == "append":
            cmd_append(args.archive, args.text)
        elif args.cmd == "append-file":
            cmd_append_file(args.archive, args.file, args.description)
        elif args.cmd == "extract":
            cmd_extract(args.archive, args.chunk_index, args.output)
        elif args.cmd == "list":
            cmd_list(args.archive, max_display=args.max_display, as_json=args.json)
        elif args.cmd == "info":
            cmd_info(args.archive)
        else:
            raise RuntimeError("Unknown command")
    except (ZzkError, OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
