from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from flashcsv.config.loader import StorageConfig
from flashcsv.db.base import StorageError
from flashcsv.db.pg_store import CARD_COLUMNS, PgStore, connect_store, resolve_dsn
from flashcsv.models.store import CardDraft


def _conn(rows=None):
    conn = MagicMock()
    cursor = conn.cursor.return_value
    cursor.fetchall.return_value = rows or []
    return conn, cursor


def test_list_decks_maps_rows():
    conn, cursor = _conn([("d1", "Spanish", ["lang", " lang"], 1, 2)])
    store = PgStore(conn)
    decks = store.list_decks()
    assert decks[0].id == "d1"
    assert decks[0].name == "Spanish"
    assert decks[0].tags == ("lang",)
    assert "FROM decks" in cursor.execute.call_args[0][0]


def test_list_cards_maps_progress():
    conn, _ = _conn([("c1", "d1", "Hi", "Hola", None, None, None, None, 1, 2, None, None)])
    card = PgStore(conn).list_cards()[0]
    assert card.notes == ""
    assert card.kind == "basic"
    assert card.progress == {"lastReviewed": None, "reviews": 0}


def test_query_failure_rolls_back():
    conn, cursor = _conn()
    cursor.execute.side_effect = RuntimeError("relation does not exist")
    with pytest.raises(StorageError, match="query failed"):
        PgStore(conn).list_decks()
    conn.rollback.assert_called_once()


def test_create_deck_inserts_immediately():
    conn, cursor = _conn()
    deck_id = PgStore(conn).create_deck("Spanish")
    sql, params = cursor.execute.call_args[0]
    assert sql.startswith("INSERT INTO decks")
    assert params[0] == deck_id
    assert params[1] == "Spanish"


def test_persist_batches_cards_and_commits():
    conn, cursor = _conn()
    store = PgStore(conn, page_size=50)
    store.create_card(CardDraft(deck_id="d1", front="Hello", back="Hola", notes="", tags=("greeting",)))
    store.create_card(CardDraft(deck_id="d1", front="Bye", back="Adios", notes="n", tags=()))
    with patch("flashcsv.db.batch_insert.execute_values") as ev:
        store.persist()
    ev.assert_called_once()
    args, kwargs = ev.call_args
    assert args[0] is cursor
    assert args[1].startswith("INSERT INTO cards")
    assert len(args[2]) == 2
    assert len(args[2][0]) == len(CARD_COLUMNS)
    assert kwargs["page_size"] == 50
    conn.commit.assert_called_once()
    assert store.last_batch is not None
    assert store.last_batch.batch_size == 2


def test_persist_failure_rolls_back():
    conn, _ = _conn()
    store = PgStore(conn)
    store.create_card(CardDraft(deck_id="d1", front="a", back="b", notes="", tags=()))
    with patch("flashcsv.db.batch_insert.execute_values", side_effect=RuntimeError("fk violation")):
        with pytest.raises(StorageError, match="cannot insert cards"):
            store.persist()
    conn.commit.assert_not_called()
    conn.rollback.assert_called()
    assert store.last_batch.batch_size == 1


def test_resolve_dsn_priority(monkeypatch):
    for var in ("DATABASE_URL", "PGDSN", "PGHOST", "PGPORT", "PGUSER", "PGPASSWORD", "PGDATABASE"):
        monkeypatch.delenv(var, raising=False)
    cfg = StorageConfig(backend="postgres", host="db", port=6543, user="app", password="pw", database="cards")
    assert resolve_dsn(cfg) == "host=db port=6543 user=app dbname=cards password=pw"

    monkeypatch.setenv("PGHOST", "envhost")
    assert resolve_dsn(cfg).startswith("host=envhost port=6543")

    cfg_dsn = StorageConfig(backend="postgres", dsn="postgresql://cfg")
    assert resolve_dsn(cfg_dsn) == "postgresql://cfg"
    monkeypatch.setenv("DATABASE_URL", "postgresql://env")
    assert resolve_dsn(cfg_dsn) == "postgresql://env"


def test_connect_store_wraps_connection_errors():
    with patch("flashcsv.db.pg_store.psycopg2.connect", side_effect=RuntimeError("refused")):
        with pytest.raises(StorageError, match="cannot connect"):
            with connect_store(StorageConfig(backend="postgres", dsn="postgresql://x")):
                pass


def test_connect_store_closes_connection():
    conn, cursor = _conn()
    with patch("flashcsv.db.pg_store.psycopg2.connect", return_value=conn):
        with connect_store(StorageConfig(backend="postgres", dsn="postgresql://x")) as store:
            assert isinstance(store, PgStore)
    assert conn.autocommit is False
    conn.rollback.assert_called_once()
    cursor.close.assert_called_once()
    conn.close.assert_called_once()
