from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

"""Storage-side records and the collaborator interface the importer writes through.

The pipeline never reads or writes storage on its own. Validation receives
read-only snapshots (decks, cards); only the import executor calls the
mutating operations below. rollback() discards writes not yet persisted.
"""

__all__ = [
    "Deck",
    "Card",
    "CardDraft",
    "StorageCollaborator",
    "zero_progress",
]


def zero_progress() -> dict[str, Any]:
    return {"lastReviewed": None, "reviews": 0}


@dataclass(frozen=True)
class Deck:
    id: str
    name: str
    tags: tuple[str, ...] = ()
    created_at: int | None = None  # epoch ms
    updated_at: int | None = None


@dataclass(frozen=True)
class Card:
    id: str
    deck_id: str
    front: str
    back: str
    notes: str = ""
    tags: tuple[str, ...] = ()
    tag_excludes: tuple[str, ...] = ()
    kind: str = "basic"
    created_at: int | None = None
    updated_at: int | None = None
    progress: dict[str, Any] = field(default_factory=zero_progress)


@dataclass(frozen=True)
class CardDraft:
    """Fields of a card the importer asks storage to create.

    Imported cards never inherit tag exclusions and start with zeroed progress;
    the store fills in id, kind and timestamps.
    """
    deck_id: str
    front: str
    back: str
    notes: str
    tags: tuple[str, ...]


class StorageCollaborator(Protocol):
    def list_decks(self) -> list[Deck]: ...

    def list_cards(self) -> list[Card]: ...

    def create_deck(self, name: str) -> str: ...

    def create_card(self, draft: CardDraft) -> None: ...

    def persist(self) -> None: ...

    def rollback(self) -> None: ...
