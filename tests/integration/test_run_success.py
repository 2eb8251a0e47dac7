from __future__ import annotations

import json
from pathlib import Path

from flashcsv.cli.__main__ import main as cli_main
from flashcsv.logging.init import reset_logging

SCENARIO = "front;back;deck;tags\nHello;Hola;Spanish;greeting|basic\nHello;Hola;Spanish;greeting\n"


def _store(temp_workdir: Path) -> dict:
    return json.loads((temp_workdir / "store" / "flashcards.json").read_text(encoding="utf-8"))


def test_semicolon_scenario_end_to_end(write_config, write_csv, temp_workdir: Path, capsys):
    reset_logging()
    write_csv("spanish.csv", SCENARIO)
    code = cli_main([])
    out = capsys.readouterr().out

    assert code == 2  # row 3 rejected
    assert "SUMMARY files=1 success=1 failed=0 imported=1 rejected=1 warnings=0" in out
    assert "INFO created deck 'Spanish'" in out

    data = _store(temp_workdir)
    assert [d["name"] for d in data["decks"]] == ["Spanish"]
    assert len(data["cards"]) == 1
    card = data["cards"][0]
    assert (card["front"], card["back"]) == ("Hello", "Hola")
    assert set(card["tags"]) == {"greeting", "basic"}
    assert card["deckId"] == data["decks"][0]["id"]
    assert data["tags"] == ["basic", "greeting"]


def test_second_run_rejects_everything_as_duplicates(write_config, write_csv, temp_workdir: Path, capsys):
    reset_logging()
    write_csv("deck.csv", "Question,Answer,Deck\nHello,Hola,Spanish\nBye,Adios,Spanish\n")
    assert cli_main([]) == 0
    capsys.readouterr()

    reset_logging()
    assert cli_main([]) == 2
    out = capsys.readouterr().out
    assert "imported=0 rejected=2" in out
    data = _store(temp_workdir)
    assert len(data["decks"]) == 1
    assert len(data["cards"]) == 2


def test_dry_run_leaves_store_untouched(write_config, write_csv, temp_workdir: Path, capsys):
    reset_logging()
    write_csv("deck.csv", "front,back\nHello,Hola\n")
    assert cli_main(["--dry-run"]) == 0
    out = capsys.readouterr().out
    assert "imported=0" in out
    assert "dry-run" in out
    assert not (temp_workdir / "store" / "flashcards.json").exists()


def test_rows_without_deck_go_to_fallback_deck(write_config, write_csv, temp_workdir: Path, capsys):
    reset_logging()
    write_csv("plain.csv", "front,back\nHello,Hola\nBye,Adios\n")
    assert cli_main([]) == 0
    out = capsys.readouterr().out
    assert "warnings=2" in out
    data = _store(temp_workdir)
    assert [d["name"] for d in data["decks"]] == ["Imported CSV"]
    assert {c["deckId"] for c in data["cards"]} == {data["decks"][0]["id"]}
