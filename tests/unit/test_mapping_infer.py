from __future__ import annotations

import pytest

from flashcsv.mapping.infer import MappingError, infer_mapping, normalize_header_name, resolve_overrides
from flashcsv.models.mapping import CanonicalField, FieldMapping


def test_normalize_header_name():
    assert normalize_header_name("  Card Front! ") == "card_front"
    assert normalize_header_name("Deck-Name") == "deckname"
    assert normalize_header_name(None) == ""


def test_infer_question_answer_deck():
    m = infer_mapping(["Question", "Answer", "Deck"])
    assert m == FieldMapping(front=0, back=1, deck=2, tags=None, notes=None)


def test_infer_aliases_anywhere():
    m = infer_mapping(["Notes", "Tags", "Term", "Definition", "Category"])
    assert m.as_dict() == {"front": 2, "back": 3, "deck": 4, "tags": 1, "notes": 0}


def test_infer_positional_fallback_for_unknown_headers():
    m = infer_mapping(["Spalte A", "Spalte B", "Spalte C"])
    assert (m.front, m.back, m.deck) == (0, 1, None)


def test_infer_single_column_leaves_back_unmapped():
    m = infer_mapping(["only"])
    assert m.front == 0 and m.back is None


def test_infer_left_most_match_wins():
    m = infer_mapping(["tag", "tags", "front", "back"])
    assert m.index_of(CanonicalField.TAGS) == 0


def test_resolve_overrides_by_name_index_and_none():
    headers = ("Q", "A", "Deck", "Extra")
    m = resolve_overrides(headers, {"front": "q", "back": 1, "deck": None, "notes": "Extra"})
    assert m.as_dict() == {"front": 0, "back": 1, "deck": None, "tags": None, "notes": 3}


def test_resolve_overrides_empty_keeps_inferred():
    headers = ("front", "back")
    assert resolve_overrides(headers, None) == infer_mapping(headers)
    assert resolve_overrides(headers, {}) == infer_mapping(headers)


@pytest.mark.parametrize(
    "overrides,match",
    [
        ({"answer": 1}, "unknown field"),
        ({"front": "nope"}, "unknown column"),
        ({"front": 9}, "points at column 9"),
        ({"front": True}, "column name or index"),
    ],
)
def test_resolve_overrides_errors(overrides, match):
    with pytest.raises(MappingError, match=match):
        resolve_overrides(("front", "back"), overrides)
