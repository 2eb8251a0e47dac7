from __future__ import annotations

import logging
import threading

from ..models.deck_ref import DeckByName, DeckRef, ExistingDeck, NoDeck
from ..models.store import CardDraft, StorageCollaborator
from ..models.validation import ValidationResult
from ..validation.validator import FALLBACK_DECK_NAME

"""Import executor: the only pipeline stage with side effects.

Takes an already validated result and writes decks/cards through the
storage collaborator. Every fallible decision was made during validation,
so the only failure left here is the storage itself, which is fatal.
"""

__all__ = [
    "ImportExecutionError",
    "execute",
]

logger = logging.getLogger(__name__)

# 同一プロセス内で取込を直列化 (デッキ名マップと重複キーの前提を守る)
_IMPORT_LOCK = threading.Lock()

_FALLBACK_KEY = object()


class ImportExecutionError(Exception):
    """Raised when the storage collaborator fails during an import."""


def _ensure_deck(store: StorageCollaborator, ref: DeckRef, decks: dict[object, str]) -> str:
    """Resolve a deck reference to a concrete deck id, creating decks at most once."""
    if isinstance(ref, ExistingDeck):
        return ref.deck_id
    if isinstance(ref, DeckByName):
        deck_id = decks.get(ref.name_lower)
        if deck_id is None:
            deck_id = store.create_deck(ref.label)
            decks[ref.name_lower] = deck_id
            logger.info(f"created deck '{ref.label}'")
        return deck_id
    if isinstance(ref, NoDeck):
        deck_id = decks.get(_FALLBACK_KEY)
        if deck_id is None:
            deck_id = store.create_deck(FALLBACK_DECK_NAME)
            decks[_FALLBACK_KEY] = deck_id
            logger.info(f"created fallback deck '{FALLBACK_DECK_NAME}'")
        return deck_id
    raise TypeError(f"unknown deck reference: {ref!r}")


def execute(result: ValidationResult, store: StorageCollaborator) -> int:
    """Create one card per valid row and persist once at the end.

    Args:
        result: Validation result to commit (its error rows are ignored)
        store: Storage collaborator receiving decks and cards

    Returns:
        Number of cards created (always len(result.valid_rows))

    Raises:
        ImportExecutionError: If any storage operation fails
    """
    with _IMPORT_LOCK:
        try:
            # デッキ名 (小文字) -> id。今回の実行内だけで有効
            decks: dict[object, str] = {
                (d.name or "").strip().lower(): d.id for d in store.list_decks()
            }
            imported = 0
            for row in result.valid_rows:
                deck_id = _ensure_deck(store, row.deck_ref, decks)
                store.create_card(
                    CardDraft(
                        deck_id=deck_id,
                        front=row.front,
                        back=row.back,
                        notes=row.notes,
                        tags=row.tags,
                    )
                )
                imported += 1
            store.persist()
        except Exception as e:
            # 部分コミットはしない
            try:
                store.rollback()
            except Exception as rb:
                logger.error(f"rollback failed: {rb}")
            raise ImportExecutionError(f"storage failure during import: {e}") from e

    logger.debug(f"imported {imported} cards")
    return imported
