from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import Any

from ..models.store import Card, CardDraft, Deck, zero_progress
from .base import StorageError, new_id, normalize_tags, now_ms

"""JSON file storage backend.

Keeps the flashcard app's v4 data document (tags / decks / cards / sessions /
settings) in a single JSON file. Changes stay in memory until persist(); rollback() drops them.
"""

__all__ = [
    "DATA_VERSION",
    "JsonFileStore",
    "empty_data",
]

logger = logging.getLogger(__name__)

DATA_VERSION = 4


def empty_data() -> dict[str, Any]:
    return {
        "version": DATA_VERSION,
        "createdAt": now_ms(),
        "tags": [],
        "decks": [],
        "cards": [],
        "sessions": [],
        "settings": {"lastDeckId": None},
    }


def _sync_registry(data: dict[str, Any]) -> None:
    tags = set(normalize_tags(data.get("tags", [])))
    for d in data["decks"]:
        tags.update(normalize_tags(d.get("tags", [])))
    for c in data["cards"]:
        tags.update(normalize_tags(c.get("tags", [])))
        tags.update(normalize_tags(c.get("tagExcludes", [])))
    data["tags"] = sorted(tags)


class JsonFileStore:
    """Storage collaborator backed by one JSON document on disk."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._data = self._load()
        self._committed = copy.deepcopy(self._data)

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            logger.debug(f"store file {self.path} not found, starting empty")
            return empty_data()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"cannot read store {self.path}: {e}") from e
        if not isinstance(data, dict) or data.get("version") != DATA_VERSION:
            raise StorageError(f"unsupported store format in {self.path} (expected version {DATA_VERSION})")
        for key, default in (("tags", []), ("decks", []), ("cards", []), ("sessions", [])):
            data.setdefault(key, default)
        data.setdefault("settings", {"lastDeckId": None})
        return data

    # -- reads -------------------------------------------------------------

    def list_decks(self) -> list[Deck]:
        return [
            Deck(
                id=d["id"],
                name=d.get("name") or "Untitled deck",
                tags=tuple(normalize_tags(d.get("tags", []))),
                created_at=d.get("createdAt"),
                updated_at=d.get("updatedAt"),
            )
            for d in self._data["decks"]
        ]

    def list_cards(self) -> list[Card]:
        return [
            Card(
                id=c["id"],
                deck_id=c.get("deckId", ""),
                front=c.get("front", ""),
                back=c.get("back", ""),
                notes=c.get("notes", ""),
                tags=tuple(normalize_tags(c.get("tags", []))),
                tag_excludes=tuple(normalize_tags(c.get("tagExcludes", []))),
                kind=c.get("kind", "basic"),
                created_at=c.get("createdAt"),
                updated_at=c.get("updatedAt"),
                progress=c.get("progress") or zero_progress(),
            )
            for c in self._data["cards"]
        ]

    # -- writes ------------------------------------------------------------

    def create_deck(self, name: str) -> str:
        ts = now_ms()
        deck = {"id": new_id("deck"), "name": name, "tags": [], "createdAt": ts, "updatedAt": ts}
        self._data["decks"].append(deck)
        return deck["id"]

    def create_card(self, draft: CardDraft) -> None:
        ts = now_ms()
        self._data["cards"].append(
            {
                "id": new_id("card"),
                "deckId": draft.deck_id,
                "kind": "basic",
                "imageData": None,
                "choices": None,
                "front": draft.front,
                "back": draft.back,
                "notes": draft.notes,
                "tags": normalize_tags(list(draft.tags)),
                "tagExcludes": [],
                "createdAt": ts,
                "updatedAt": ts,
                "progress": zero_progress(),
            }
        )

    def persist(self) -> None:
        _sync_registry(self._data)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(self._data, ensure_ascii=False, indent=2), encoding="utf-8")
            tmp.replace(self.path)
        except OSError as e:
            raise StorageError(f"cannot write store {self.path}: {e}") from e
        self._committed = copy.deepcopy(self._data)
        logger.debug(f"store persisted: decks={len(self._data['decks'])} cards={len(self._data['cards'])}")

    def rollback(self) -> None:
        """Forget every change made since the last load or persist."""
        self._data = copy.deepcopy(self._committed)
