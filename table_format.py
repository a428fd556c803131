"""
Text layout of a coded document:

    <tsize>
    <symbol>\t<probability>\t<codeword>     (tsize rows)
    <blank line>
    <payload of '0'/'1' characters>

The symbol is always exactly one character, so rows are read by position and
tab, newline or carriage return are legal symbols.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

from huffman import (
    FormatError,
    build_huffman_tree,
    frequency_table,
    generate_huffman_codes,
    huffman_decode,
    huffman_encode,
)

NL = "\n"
PROBABILITY_FORMAT = "{:f}"  # six decimals


@dataclass
class TableRow:
    symbol: str
    probability: float
    codeword: str


@dataclass
class CodedDocument:
    rows: List[TableRow] = field(default_factory=list)
    payload: str = ""

    def codes(self) -> Dict[str, str]:
        codes: Dict[str, str] = {}
        for row in self.rows:
            if row.symbol in codes:
                raise FormatError(f"symbol {row.symbol!r} listed twice", phase="table parse")
            codes[row.symbol] = row.codeword
        return codes


def format_table(rows: List[TableRow]) -> str:
    lines = [f"{len(rows)}{NL}"]
    for row in rows:
        prob = PROBABILITY_FORMAT.format(row.probability)
        lines.append(f"{row.symbol}\t{prob}\t{row.codeword}{NL}")
    lines.append(NL)
    return "".join(lines)


def format_document(doc: CodedDocument) -> str:
    return format_table(doc.rows) + doc.payload


def encode_document(text: str, use_heap: bool = False) -> CodedDocument:
    """Count, build the tree, derive codes and code text into a document."""
    entries = frequency_table(text)
    codes = generate_huffman_codes(build_huffman_tree(entries, use_heap=use_heap))
    rows = [TableRow(e.symbol, e.probability, codes[e.symbol]) for e in entries]
    return CodedDocument(rows, huffman_encode(text, codes))


def encode_text(text: str, use_heap: bool = False) -> str:
    return format_document(encode_document(text, use_heap=use_heap))


class _Reader:
    # cursor over the document, tracks the line number for error messages

    def __init__(self, blob: str):
        self.blob = blob
        self.pos = 0
        self.line = 1

    def fail(self, message: str):
        raise FormatError(f"line {self.line}: {message}", phase="table parse")

    def take_char(self) -> str:
        if self.pos >= len(self.blob):
            self.fail("unexpected end of table")
        ch = self.blob[self.pos]
        self.pos += 1
        if ch == NL:
            self.line += 1
        return ch

    def take_until(self, stop: str) -> str:
        end = self.blob.find(stop, self.pos)
        if end < 0:
            self.fail(f"missing {stop!r}")
        value = self.blob[self.pos:end]
        self.pos = end + 1
        if stop == NL:
            self.line += 1
        return value

    def take_line(self) -> str:
        return self.take_until(NL).rstrip("\r")


def parse_row(reader: _Reader) -> TableRow:
    symbol = reader.take_char()
    if reader.take_char() != "\t":
        reader.fail(f"expected tab after symbol {symbol!r}")

    prob_text = reader.take_until("\t")
    if NL in prob_text:
        reader.fail(f"row for symbol {symbol!r} has too few fields")
    try:
        probability = float(prob_text)
    except ValueError:
        reader.fail(f"bad probability {prob_text!r} for symbol {symbol!r}")

    codeword = reader.take_line()
    if not codeword or codeword.strip("01"):
        reader.fail(f"bad codeword {codeword!r} for symbol {symbol!r}")
    return TableRow(symbol, probability, codeword)


def parse_document(blob: str) -> CodedDocument:
    reader = _Reader(blob)

    size_text = reader.take_line().strip()
    try:
        tsize = int(size_text)
    except ValueError:
        reader.fail(f"table size {size_text!r} is not a number")
    if tsize < 1:
        reader.fail(f"table size must be positive, got {tsize}")

    rows = [parse_row(reader) for _ in range(tsize)]

    if reader.take_line() != "":
        reader.fail("expected blank line after the table")

    payload = blob[reader.pos:]
    # a single trailing line end is tolerated
    if payload.endswith("\r\n"):
        payload = payload[:-2]
    elif payload.endswith(NL):
        payload = payload[:-1]
    return CodedDocument(rows, payload)


def parse_table(blob: str) -> List[TableRow]:
    return parse_document(blob).rows


def decode_document(doc: CodedDocument) -> str:
    return huffman_decode(doc.payload, doc.codes())


def decode_text(blob: str) -> str:
    return decode_document(parse_document(blob))
