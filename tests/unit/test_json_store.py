from __future__ import annotations

import json
from pathlib import Path

import pytest

from flashcsv.db.base import StorageError, new_id, normalize_tags
from flashcsv.db.json_store import DATA_VERSION, JsonFileStore
from flashcsv.models.store import CardDraft


def test_normalize_tags_and_ids():
    assert normalize_tags([" a ", "b  c", "", None, "a"]) == ["a", "b c"]
    assert normalize_tags("not-a-list") == []
    assert new_id("deck").startswith("deck_")
    assert new_id("card") != new_id("card")


def test_missing_file_starts_empty(tmp_path: Path):
    store = JsonFileStore(tmp_path / "store.json")
    assert store.list_decks() == []
    assert store.list_cards() == []


def test_create_and_persist(tmp_path: Path):
    path = tmp_path / "nested" / "store.json"
    store = JsonFileStore(path)
    deck_id = store.create_deck("Spanish")
    store.create_card(CardDraft(deck_id=deck_id, front="Hello", back="Hola", notes="", tags=("greeting", " basic ")))
    store.persist()

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["version"] == DATA_VERSION
    assert data["tags"] == ["basic", "greeting"]
    card = data["cards"][0]
    assert card["deckId"] == deck_id
    assert card["tags"] == ["greeting", "basic"]
    assert card["tagExcludes"] == []
    assert card["progress"] == {"lastReviewed": None, "reviews": 0}
    assert not path.with_suffix(".json.tmp").exists()

    reopened = JsonFileStore(path)
    assert [d.name for d in reopened.list_decks()] == ["Spanish"]
    assert reopened.list_cards()[0].front == "Hello"


def test_rollback_discards_unpersisted_changes(tmp_path: Path):
    store = JsonFileStore(tmp_path / "store.json")
    store.create_deck("Kept")
    store.persist()
    store.create_deck("Dropped")
    store.rollback()
    assert [d.name for d in store.list_decks()] == ["Kept"]


def test_bad_files_raise(tmp_path: Path):
    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    with pytest.raises(StorageError, match="cannot read store"):
        JsonFileStore(broken)

    old = tmp_path / "old.json"
    old.write_text(json.dumps({"version": 2, "decks": []}), encoding="utf-8")
    with pytest.raises(StorageError, match="unsupported store format"):
        JsonFileStore(old)
