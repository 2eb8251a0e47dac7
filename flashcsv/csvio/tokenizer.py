from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence

"""Hand-written CSV tokenizer.

Only the subset of CSV the importer accepts: quoted fields, doubled quotes
inside quoted fields, and a single-character delimiter. Quote handling lives
in QuoteScanner so the tokenizer and the delimiter sniffer cannot drift apart.
"""

__all__ = [
    "BOM",
    "ParseError",
    "QuoteScanner",
    "tokenize",
    "escape_cell",
    "serialize",
]

BOM = "\ufeff"
QUOTE = '"'


class ParseError(Exception):
    """Raised when CSV text cannot be turned into a table (fatal for the file)."""


class QuoteScanner:
    """Quote-state scan over a piece of text.

    Iterating yields ``(char, quoted)`` for every content character. Quote
    syntax itself is consumed: a lone ``"`` toggles quote mode and ``""``
    inside quotes yields a single ``"`` with ``quoted=True``. After iteration,
    ``in_quotes`` tells whether the text ended inside a quoted value.
    """

    def __init__(self, text: str) -> None:
        self.text = text
        self.in_quotes = False

    def __iter__(self) -> Iterator[tuple[str, bool]]:
        text = self.text
        self.in_quotes = False
        i = 0
        n = len(text)
        while i < n:
            ch = text[i]
            if self.in_quotes:
                if ch == QUOTE:
                    if i + 1 < n and text[i + 1] == QUOTE:
                        yield QUOTE, True
                        i += 2
                        continue
                    self.in_quotes = False
                else:
                    yield ch, True
            elif ch == QUOTE:
                self.in_quotes = True
            else:
                yield ch, False
            i += 1


def tokenize(text: str, delimiter: str) -> list[list[str]]:
    """Split CSV text into rows of raw cells.

    Outside quotes the delimiter ends a cell, ``\\n`` ends a row and ``\\r``
    is dropped. Inside quotes every character is literal. A trailing row
    without a final newline is still emitted.

    Raises:
        ParseError: If the text ends inside a quoted value
    """
    if text.startswith(BOM):
        text = text[1:]

    rows: list[list[str]] = []
    row: list[str] = []
    cell: list[str] = []

    scanner = QuoteScanner(text)
    for ch, quoted in scanner:
        if quoted:
            cell.append(ch)
        elif ch == delimiter:
            row.append("".join(cell))
            cell = []
        elif ch == "\n":
            row.append("".join(cell))
            rows.append(row)
            row = []
            cell = []
        elif ch == "\r":
            continue
        else:
            cell.append(ch)

    if scanner.in_quotes:
        # 部分的な行は救済しない
        raise ParseError("CSV has an unterminated quoted value.")
    if cell or row:
        row.append("".join(cell))
        rows.append(row)
    return rows


def escape_cell(value: object, delimiter: str = ",") -> str:
    """Quote a cell when it contains the delimiter, a quote or a line break."""
    s = "" if value is None else str(value)
    if delimiter in s or QUOTE in s or "\n" in s or "\r" in s:
        return QUOTE + s.replace(QUOTE, QUOTE * 2) + QUOTE
    return s


def serialize(rows: Iterable[Sequence[object]], delimiter: str = ",") -> str:
    """Inverse of tokenize for tables of strings.

    Every row, the last one included, ends with ``\\n`` so a trailing row
    made of one empty cell survives the round trip.
    """
    return "".join(delimiter.join(escape_cell(c, delimiter) for c in row) + "\n" for row in rows)
