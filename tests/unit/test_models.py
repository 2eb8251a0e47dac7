from __future__ import annotations

import dataclasses

import pytest

from flashcsv.models import (
    CanonicalField,
    DeckByName,
    ExistingDeck,
    FieldMapping,
    ImportOptions,
    NoDeck,
    RawRow,
    ValidationResult,
)
from flashcsv.models.store import CardDraft, zero_progress


class TestImportOptions:
    def test_defaults(self):
        opts = ImportOptions()
        assert opts.default_deck_id is None
        assert opts.tag_separator == ","
        assert opts.create_missing_decks is True
        assert opts.skip_duplicates is True
        assert opts.lock_to_default_deck is False

    def test_empty_default_deck_means_none(self):
        assert ImportOptions(default_deck_id="").default_deck_id is None

    @pytest.mark.parametrize("sep", ["", "||", None])
    def test_tag_separator_must_be_one_char(self, sep):
        with pytest.raises(ValueError):
            ImportOptions(tag_separator=sep)

    def test_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            ImportOptions().skip_duplicates = False  # type: ignore[misc]


def test_deck_ref_keys():
    assert ExistingDeck("d1").key == "existing:d1"
    assert DeckByName("spanish", "Spanish").key == "byName:spanish"
    assert NoDeck().key == "none"


def test_field_mapping_helpers():
    m = FieldMapping(front=0, back=1)
    assert m.index_of(CanonicalField.BACK) == 1
    assert m.with_overrides(deck=2).deck == 2
    assert m.deck is None
    with pytest.raises(TypeError):
        m.with_overrides(answer=3)


def test_raw_row_value_at():
    row = RawRow(row_number=2, values=("a", "b"))
    assert row.value_at(1) == "b"
    assert row.value_at(None) == ""
    assert row.value_at(5) == ""


def test_rejected_result_has_one_synthetic_row():
    result = ValidationResult.rejected("Front and back columns are required in mapping.")
    assert result.valid_rows == ()
    assert [(e.row_number, e.reason) for e in result.error_rows] == [
        (1, "Front and back columns are required in mapping.")
    ]


def test_zero_progress_is_fresh_each_time():
    a = zero_progress()
    a["reviews"] = 3
    assert zero_progress() == {"lastReviewed": None, "reviews": 0}
    draft = CardDraft(deck_id="d", front="f", back="b", notes="", tags=())
    assert not hasattr(draft, "progress")
