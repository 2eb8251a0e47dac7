from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from ..models.validation import ErrorRow
from .tokenizer import serialize

"""Rejected-row export.

The file is meant to be fixed by hand and fed back through the same
pipeline, so it uses the tokenizer's own quoting rule.
"""

__all__ = [
    "ERROR_CSV_HEADER",
    "to_csv",
    "write_error_csv",
]

ERROR_CSV_HEADER = ("row_number", "reason")


def to_csv(error_rows: Iterable[ErrorRow]) -> str:
    """Serialize rejected rows as a two-column, comma-delimited CSV."""
    lines = [ERROR_CSV_HEADER]
    lines.extend((str(r.row_number), r.reason) for r in error_rows)
    return serialize(lines, ",")


def write_error_csv(path: Path, error_rows: Iterable[ErrorRow]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(to_csv(error_rows), encoding="utf-8")
    return path
