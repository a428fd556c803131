"""
Huffman coding from the command line

Usage: huffman [-d] input [output]
    The default action is to encode input.
    -d  decode input instead

Examples:
    huffman input.txt
    huffman input.txt encoded.txt
    huffman -d encoded.txt
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from huffman import HuffmanError, PreconditionError
from table_format import decode_text, encode_document, format_table

DEFAULT_ENCODED = "encoded.txt"
DEFAULT_DECODED = "decoded.txt"

# latin-1 maps bytes 0-255 one to one onto characters
ENCODING = "latin-1"


def read_input(path: Path) -> str:
    try:
        with path.open("r", encoding=ENCODING, newline="") as f:
            return f.read()
    except OSError as exc:
        raise PreconditionError(f"cannot read {path}: {exc.strerror or exc}", phase="io") from exc


def write_output(path: Path, text: str) -> None:
    try:
        with path.open("w", encoding=ENCODING, newline="") as f:
            f.write(text)
    except OSError as exc:
        raise HuffmanError(f"cannot write {path}: {exc.strerror or exc}", phase="io") from exc


def encode_file(src: Path, dst: Path, quiet: bool = False) -> None:
    text = read_input(src)
    if not text:
        raise PreconditionError(f"{src} is empty, nothing to encode", phase="counting")

    doc = encode_document(text)
    table = format_table(doc.rows)
    write_output(dst, table + doc.payload)

    if not quiet:
        print(table, end="")
        print(f"Encoded {len(text)} symbols into {len(doc.payload)} bits -> {dst}")


def decode_file(src: Path, dst: Path, quiet: bool = False) -> None:
    blob = read_input(src)
    if not blob:
        raise PreconditionError(f"{src} is empty, no table to decode", phase="table parse")

    text = decode_text(blob)
    write_output(dst, text)

    if not quiet:
        print(f"Decoded {len(text)} symbols -> {dst}")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="huffman", description="Static Huffman coder (text '0'/'1' output)")
    ap.add_argument("-d", "--decode", action="store_true", help="Decode input instead of encoding it")
    ap.add_argument("-q", "--quiet", action="store_true", help="Do not echo the code table and summary")
    ap.add_argument("input", type=str, help="Input file")
    ap.add_argument("output", type=str, nargs="?", default=None,
                    help=f"Output file (default {DEFAULT_ENCODED}, or {DEFAULT_DECODED} with -d)")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    src = Path(args.input)
    if args.output is not None:
        dst = Path(args.output)
    else:
        dst = Path(DEFAULT_DECODED if args.decode else DEFAULT_ENCODED)

    try:
        if args.decode:
            decode_file(src, dst, quiet=args.quiet)
        else:
            encode_file(src, dst, quiet=args.quiet)
    except HuffmanError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
