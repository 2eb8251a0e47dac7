# Shared pytest fixtures
from __future__ import annotations
import tempfile
from pathlib import Path
import pytest

from flashcsv.models.store import Card, CardDraft, Deck


class MemoryStore:
    """In-memory StorageCollaborator used by unit tests."""

    def __init__(self, decks=None, cards=None, fail_on=None):
        self.decks: list[Deck] = list(decks or [])
        self.cards: list[Card] = list(cards or [])
        self.fail_on = fail_on  # "create_deck" / "create_card" / "persist"
        self.persist_calls = 0
        self.rollback_calls = 0
        self._pending_decks: list[Deck] = []
        self._pending_cards: list[Card] = []
        self._seq = 0

    def list_decks(self):
        return self.decks + self._pending_decks

    def list_cards(self):
        return self.cards + self._pending_cards

    def create_deck(self, name: str) -> str:
        if self.fail_on == "create_deck":
            raise RuntimeError("deck insert failed")
        self._seq += 1
        deck = Deck(id=f"deck_{self._seq}", name=name)
        self._pending_decks.append(deck)
        return deck.id

    def create_card(self, draft: CardDraft) -> None:
        if self.fail_on == "create_card":
            raise RuntimeError("card insert failed")
        self._seq += 1
        self._pending_cards.append(
            Card(
                id=f"card_{self._seq}",
                deck_id=draft.deck_id,
                front=draft.front,
                back=draft.back,
                notes=draft.notes,
                tags=tuple(draft.tags),
            )
        )

    def persist(self) -> None:
        if self.fail_on == "persist":
            raise RuntimeError("disk full")
        self.persist_calls += 1
        self.decks.extend(self._pending_decks)
        self.cards.extend(self._pending_cards)
        self._pending_decks = []
        self._pending_cards = []

    def rollback(self) -> None:
        self.rollback_calls += 1
        self._pending_decks = []
        self._pending_cards = []


@pytest.fixture()
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture()
def make_store():
    return MemoryStore


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """source_directory: ./data
errors_directory: ./errors
logs_directory: ./logs
parse:
  delimiter: auto
  has_header_row: true
options:
  tag_separator: "|"
  create_missing_decks: true
  skip_duplicates: true
storage:
  backend: json
  path: ./store/flashcards.json
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def write_csv(temp_workdir: Path):
    def _write(name: str, text: str) -> Path:
        f = temp_workdir / "data" / name
        f.write_text(text, encoding="utf-8")
        return f
    return _write
