from __future__ import annotations

from dataclasses import dataclass

"""Import options chosen by the user for one validation/import run."""

__all__ = [
    "ImportOptions",
]


@dataclass(frozen=True)
class ImportOptions:
    """Options that steer row validation and deck resolution.

    Attributes:
        default_deck_id: Deck used when a row names no deck (or the deck is locked)
        tag_separator: Single character splitting the tags cell
        create_missing_decks: Unknown deck names are created instead of rejected
        skip_duplicates: Reject rows whose dedup key was already seen
        lock_to_default_deck: Ignore the deck column entirely
    """
    default_deck_id: str | None = None
    tag_separator: str = ","
    create_missing_decks: bool = True
    skip_duplicates: bool = True
    lock_to_default_deck: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.tag_separator, str) or len(self.tag_separator) != 1:
            raise ValueError(f"tag_separator must be a single character, got {self.tag_separator!r}")
        if self.default_deck_id == "":
            # 空文字は「未指定」と同義
            object.__setattr__(self, "default_deck_id", None)
