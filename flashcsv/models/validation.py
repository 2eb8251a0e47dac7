from __future__ import annotations

from dataclasses import dataclass

from .deck_ref import DeckRef

"""Validation result models.

A ValidationResult is produced fresh on every validation run and is never
merged with or patched from a previous one. A row ends up either as a
ValidRow or as an ErrorRow, never both and never partially.
"""

__all__ = [
    "PREVIEW_LIMIT",
    "ValidRow",
    "ErrorRow",
    "ValidationResult",
]

PREVIEW_LIMIT = 20


@dataclass(frozen=True)
class ValidRow:
    row_number: int
    front: str  # 1..2000 chars
    back: str  # 1..4000 chars
    notes: str  # 0..6000 chars
    tags: tuple[str, ...]  # trimmed, de-duplicated, first-seen order
    deck_ref: DeckRef
    deck_label: str  # 表示用デッキ名


@dataclass(frozen=True)
class ErrorRow:
    row_number: int
    reason: str


@dataclass(frozen=True)
class ValidationResult:
    valid_rows: tuple[ValidRow, ...] = ()
    error_rows: tuple[ErrorRow, ...] = ()
    warn_rows: int = 0  # rows accepted without a resolvable deck

    @property
    def preview(self) -> tuple[ValidRow, ...]:
        """First PREVIEW_LIMIT valid rows, shown before committing."""
        return self.valid_rows[:PREVIEW_LIMIT]

    @classmethod
    def rejected(cls, reason: str) -> ValidationResult:
        """Whole-table rejection: one synthetic error row, nothing valid."""
        return cls(valid_rows=(), error_rows=(ErrorRow(row_number=1, reason=reason),), warn_rows=0)
