from __future__ import annotations

from dataclasses import dataclass
from typing import Union

"""Deck references resolved during validation.

A row either points at a deck that already exists, at a deck that will be
created by name on import, or at no deck at all (the import assigns the
shared fallback deck). The import executor branches on the variant type.
"""

__all__ = [
    "ExistingDeck",
    "DeckByName",
    "NoDeck",
    "DeckRef",
]


@dataclass(frozen=True)
class ExistingDeck:
    deck_id: str

    @property
    def key(self) -> str:
        return f"existing:{self.deck_id}"


@dataclass(frozen=True)
class DeckByName:
    name_lower: str
    label: str  # name as written in the CSV, used for the created deck

    @property
    def key(self) -> str:
        return f"byName:{self.name_lower}"


@dataclass(frozen=True)
class NoDeck:
    @property
    def key(self) -> str:
        return "none"


DeckRef = Union[ExistingDeck, DeckByName, NoDeck]
