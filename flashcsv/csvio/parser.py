from __future__ import annotations

from pathlib import Path

from ..models.table import RawRow, RawTable
from .sniffer import delimiter_name, sniff
from .tokenizer import ParseError, tokenize

"""File parser: raw CSV text -> RawTable.

Steps:
1. Resolve the delimiter (pinned or sniffed)
2. Tokenize the full text
3. Build headers (from the first record, or synthesized column_N)
4. De-duplicate header names (_2, _3, ...)
5. Align every remaining record to the header width, drop blank records
"""

__all__ = [
    "ParseError",
    "DELIMITER_MODES",
    "resolve_delimiter",
    "parse_file",
    "read_source",
]

# 名前指定 / リテラル指定の両方を受け付ける
DELIMITER_MODES: dict[str, str] = {
    "comma": ",",
    "semicolon": ";",
    "tab": "\t",
    ",": ",",
    ";": ";",
    "\t": "\t",
}


def resolve_delimiter(text: str, delimiter_mode: str | None) -> str:
    """Turn a delimiter mode into an actual delimiter character.

    Raises:
        ParseError: If the mode names no usable delimiter
    """
    mode = "auto" if delimiter_mode is None else delimiter_mode
    if mode == "auto":
        return sniff(text)
    try:
        return DELIMITER_MODES[mode]
    except KeyError:
        raise ParseError(f"Unsupported delimiter mode: {mode!r}") from None


def _dedupe_headers(headers: list[str]) -> tuple[str, ...]:
    seen: dict[str, int] = {}
    unique: list[str] = []
    for h in headers:
        n = seen.get(h, 0)
        seen[h] = n + 1
        unique.append(h if n == 0 else f"{h}_{n + 1}")
    return tuple(unique)


def parse_file(text: str, delimiter_mode: str | None = "auto", has_header_row: bool = True) -> RawTable:
    """Parse CSV text into a RawTable with stable row numbers.

    Args:
        text: Full file contents (a leading BOM is tolerated)
        delimiter_mode: "auto", "comma", "semicolon", "tab" or a literal delimiter
        has_header_row: Whether the first record holds column names

    Returns:
        RawTable whose rows all have len(values) == len(headers)

    Raises:
        ParseError: Unusable delimiter, unterminated quote, no records at all,
            or an empty header row
    """
    delimiter = resolve_delimiter(text, delimiter_mode)
    records = tokenize(text, delimiter)
    if not records:
        raise ParseError("CSV contains no rows.")

    first = records[0]
    if has_header_row:
        raw_headers = [cell.strip() for cell in first]
        if not any(raw_headers):
            raise ParseError("CSV header row is empty.")
        headers = [h or f"column_{i + 1}" for i, h in enumerate(raw_headers)]
    else:
        headers = [f"column_{i + 1}" for i in range(len(first))]
    unique_headers = _dedupe_headers(headers)

    rows: list[RawRow] = []
    start = 1 if has_header_row else 0
    width = len(unique_headers)
    for index in range(start, len(records)):
        record = records[index]
        values = tuple((record[i] if i < len(record) else "").strip() for i in range(width))
        if not any(values):
            continue
        rows.append(RawRow(row_number=index + 1, values=values))

    return RawTable(
        delimiter=delimiter,
        delimiter_name=delimiter_name(delimiter),
        headers=unique_headers,
        rows=tuple(rows),
    )


def read_source(path: Path) -> str:
    """Read a source file's text in one shot.

    Raises:
        ParseError: If the file cannot be read or is not valid UTF-8
    """
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ParseError(f"{path.name} is not valid UTF-8 text: {e.reason}") from e
    except OSError as e:
        raise ParseError(f"cannot read {path}: {e}") from e
