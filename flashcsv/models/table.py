from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

"""RawTable model: the structured output of the file parser.

A RawTable is owned by a single import operation and is never persisted.
Rows that were blank in the source never make it in here.
"""

__all__ = [
    "DelimiterName",
    "RawRow",
    "RawTable",
]


class DelimiterName(Enum):
    """Human-facing name of the delimiter a table was parsed with."""
    COMMA = "comma"
    SEMICOLON = "semicolon"
    TAB = "tab"


@dataclass(frozen=True)
class RawRow:
    """One non-blank data record.

    row_number is the 1-based record position in the source, counting the
    header record, so dropped blank rows leave gaps instead of shifting.
    """
    row_number: int
    values: tuple[str, ...]  # headers と同じ長さ

    def value_at(self, index: int | None) -> str:
        if index is None or index < 0 or index >= len(self.values):
            return ""
        return self.values[index]


@dataclass(frozen=True)
class RawTable:
    delimiter: str
    delimiter_name: DelimiterName
    headers: tuple[str, ...]  # unique, de-duplicated by suffixing
    rows: tuple[RawRow, ...]

    @property
    def column_count(self) -> int:
        return len(self.headers)
