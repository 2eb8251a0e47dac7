from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import psycopg2

from ..models.store import Card, CardDraft, Deck
from .base import StorageError, new_id, normalize_tags, now_ms
from .batch_insert import BatchMetrics, batch_insert

if TYPE_CHECKING:
    from ..config.loader import StorageConfig

"""PostgreSQL storage backend (psycopg2).

Expected schema::

    CREATE TABLE decks (
        id text PRIMARY KEY, name text NOT NULL, tags text[] NOT NULL DEFAULT '{}',
        created_at bigint, updated_at bigint
    );
    CREATE TABLE cards (
        id text PRIMARY KEY, deck_id text NOT NULL REFERENCES decks(id),
        kind text NOT NULL DEFAULT 'basic', front text NOT NULL, back text NOT NULL,
        notes text NOT NULL DEFAULT '', tags text[] NOT NULL DEFAULT '{}',
        tag_excludes text[] NOT NULL DEFAULT '{}', created_at bigint, updated_at bigint,
        last_reviewed bigint, reviews integer NOT NULL DEFAULT 0
    );

Decks are inserted as soon as they are created (cards reference them);
cards are buffered and flushed in one batch by persist(), which also
commits: one import is one transaction.
"""

__all__ = [
    "CARD_COLUMNS",
    "PgStore",
    "resolve_dsn",
    "connect_store",
]

logger = logging.getLogger(__name__)

CARD_COLUMNS = (
    "id", "deck_id", "kind", "front", "back", "notes", "tags", "tag_excludes",
    "created_at", "updated_at", "last_reviewed", "reviews",
)


class PgStore:
    """Storage collaborator over an open psycopg2 connection.

    One import = one transaction: persist() commits, rollback() (or any
    failed write) discards the decks and cards written since the last commit.
    """

    def __init__(self, conn: Any, page_size: int = 1000) -> None:
        self.conn = conn
        self.cursor = conn.cursor()
        self.page_size = page_size
        self._pending_cards: list[tuple[Any, ...]] = []
        self.last_batch: BatchMetrics | None = None

    def _fetch(self, sql: str) -> list[tuple[Any, ...]]:
        try:
            self.cursor.execute(sql)
            return list(self.cursor.fetchall())
        except Exception as e:
            self.rollback()
            raise StorageError(f"query failed: {e}") from e

    def list_decks(self) -> list[Deck]:
        rows = self._fetch("SELECT id, name, tags, created_at, updated_at FROM decks ORDER BY created_at, id")
        return [
            Deck(id=r[0], name=r[1], tags=tuple(normalize_tags(r[2] or [])), created_at=r[3], updated_at=r[4])
            for r in rows
        ]

    def list_cards(self) -> list[Card]:
        rows = self._fetch(
            "SELECT id, deck_id, front, back, notes, tags, tag_excludes, kind, created_at, updated_at, "
            "last_reviewed, reviews FROM cards ORDER BY created_at, id"
        )
        return [
            Card(
                id=r[0],
                deck_id=r[1],
                front=r[2],
                back=r[3],
                notes=r[4] or "",
                tags=tuple(normalize_tags(r[5] or [])),
                tag_excludes=tuple(normalize_tags(r[6] or [])),
                kind=r[7] or "basic",
                created_at=r[8],
                updated_at=r[9],
                progress={"lastReviewed": r[10], "reviews": r[11] or 0},
            )
            for r in rows
        ]

    def create_deck(self, name: str) -> str:
        deck_id = new_id("deck")
        ts = now_ms()
        try:
            self.cursor.execute(
                "INSERT INTO decks (id, name, tags, created_at, updated_at) VALUES (%s, %s, %s, %s, %s)",
                (deck_id, name, [], ts, ts),
            )
        except Exception as e:
            self.rollback()
            raise StorageError(f"cannot create deck '{name}': {e}") from e
        return deck_id

    def create_card(self, draft: CardDraft) -> None:
        ts = now_ms()
        self._pending_cards.append(
            (
                new_id("card"), draft.deck_id, "basic", draft.front, draft.back, draft.notes,
                normalize_tags(list(draft.tags)), [], ts, ts, None, 0,
            )
        )

    def _record_batch(self, metrics: BatchMetrics) -> None:
        self.last_batch = metrics
        logger.debug(f"card batch size={metrics.batch_size} elapsed_sec={metrics.elapsed_seconds:.3f}")

    def persist(self) -> None:
        try:
            result = batch_insert(
                self.cursor,
                "cards",
                CARD_COLUMNS,
                self._pending_cards,
                page_size=self.page_size,
                metrics_callback=self._record_batch,
            )
            self.conn.commit()
        except Exception as e:
            self.rollback()
            raise StorageError(f"cannot insert cards: {e}") from e
        logger.debug(f"cards inserted: {result.inserted_rows}")
        self._pending_cards.clear()

    def rollback(self) -> None:
        self._pending_cards.clear()
        try:
            self.conn.rollback()
        except Exception as e:  # pragma: no cover - connection already gone
            logger.debug(f"rollback failed: {e}")

    def close(self) -> None:
        try:
            self.cursor.close()
        finally:
            self.conn.close()


def resolve_dsn(cfg: StorageConfig) -> str:
    """Connection string, most specific source first.

    1. DATABASE_URL / PGDSN (環境変数, .env で上書き済み)
    2. storage.dsn in the config
    3. PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE, falling back to
       the matching storage.* keys
    """
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or cfg.dsn
    if dsn:
        return dsn
    host = os.getenv("PGHOST", cfg.host or "localhost")
    port = os.getenv("PGPORT", str(cfg.port) if cfg.port else "5432")
    user = os.getenv("PGUSER", cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", cfg.password or "")
    database = os.getenv("PGDATABASE", cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


@contextmanager
def connect_store(cfg: StorageConfig) -> Iterator[PgStore]:
    """Open a connection and yield a PgStore; uncommitted work is rolled back on exit."""
    try:
        conn = psycopg2.connect(resolve_dsn(cfg))
    except Exception as e:
        raise StorageError(f"cannot connect to PostgreSQL: {e}") from e
    conn.autocommit = False  # 明示トランザクション境界 (persist 単位で COMMIT)
    store = PgStore(conn)
    try:
        yield store
    finally:
        store.rollback()
        store.close()
