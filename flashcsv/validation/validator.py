from __future__ import annotations

import re
from collections.abc import Iterable, Mapping

from ..mapping.infer import MappingError
from ..models.deck_ref import DeckByName, DeckRef, ExistingDeck, NoDeck
from ..models.mapping import CanonicalField, FieldMapping
from ..models.options import ImportOptions
from ..models.store import Card, Deck
from ..models.table import RawRow, RawTable
from ..models.validation import ErrorRow, ValidationResult, ValidRow

"""Row validation and duplicate suppression.

validate() is pure: it reads the table, the mapping, the options and
read-only snapshots of existing cards/decks, and returns a fresh
ValidationResult. Nothing is carried between calls.

Per-row checks run in a fixed order and stop at the first failure:
required fields -> length bounds -> deck resolution -> tags -> duplicates.
"""

__all__ = [
    "MAX_FRONT_LENGTH",
    "MAX_BACK_LENGTH",
    "MAX_NOTES_LENGTH",
    "FALLBACK_DECK_NAME",
    "DEFAULT_DECK_LABEL",
    "check_mapping",
    "index_decks_by_name",
    "normalize_dup_text",
    "dedup_key",
    "parse_tag_list",
    "validate",
]

MAX_FRONT_LENGTH = 2000
MAX_BACK_LENGTH = 4000
MAX_NOTES_LENGTH = 6000

# 取込時にデッキ未指定行へ割り当てる共有デッキ
FALLBACK_DECK_NAME = "Imported CSV"
DEFAULT_DECK_LABEL = "Default deck"

_WHITESPACE = re.compile(r"\s+")


class _RowRejected(Exception):
    """Internal short-circuit for one row; never escapes validate()."""


def check_mapping(mapping: FieldMapping, column_count: int) -> None:
    """Reject mappings that make row-level validation meaningless.

    Raises:
        MappingError: front/back unmapped, front and back on the same column,
            or any mapped column outside the table
    """
    if mapping.front is None or mapping.back is None:
        raise MappingError("Front and back columns are required in mapping.")
    if mapping.front == mapping.back:
        raise MappingError("Front and back mappings must use different columns.")
    for field in CanonicalField:
        idx = mapping.index_of(field)
        if idx is not None and not 0 <= idx < column_count:
            raise MappingError(f"Mapping for {field.value} points outside the table (column {idx}).")


def index_decks_by_name(decks: Iterable[Deck]) -> dict[str, Deck]:
    """Key decks by trimmed, lowercased name (later decks win on a name clash)."""
    return {(d.name or "").strip().lower(): d for d in decks}


def normalize_dup_text(s: str | None) -> str:
    return _WHITESPACE.sub(" ", ("" if s is None else str(s)).strip().lower())


def dedup_key(deck_ref: DeckRef, front: str, back: str) -> str:
    """Composite identity of a card: target deck + normalized front/back.

    Deck-less rows share the "none" bucket; they all land in the single
    fallback deck created for the run, so identical texts there are real
    duplicates.
    """
    return f"{deck_ref.key}|{normalize_dup_text(front)}|{normalize_dup_text(back)}"


def parse_tag_list(raw: str | None, separator: str) -> tuple[str, ...]:
    """Split a tags cell; trim, collapse inner whitespace, drop empties, de-duplicate."""
    seen: dict[str, None] = {}
    for part in ("" if raw is None else str(raw)).split(separator or ","):
        tag = _WHITESPACE.sub(" ", part.strip())
        if tag:
            seen.setdefault(tag, None)
    return tuple(seen)


def _check_lengths(front: str, back: str, notes: str) -> None:
    if len(front) > MAX_FRONT_LENGTH:
        raise _RowRejected(f"Field length exceeded: front is longer than {MAX_FRONT_LENGTH} characters.")
    if len(back) > MAX_BACK_LENGTH:
        raise _RowRejected(f"Field length exceeded: back is longer than {MAX_BACK_LENGTH} characters.")
    if len(notes) > MAX_NOTES_LENGTH:
        raise _RowRejected(f"Field length exceeded: notes is longer than {MAX_NOTES_LENGTH} characters.")


class _DeckResolver:
    def __init__(self, options: ImportOptions, decks_by_lower_name: Mapping[str, Deck], deck_column: bool) -> None:
        self.options = options
        self.decks_by_lower_name = decks_by_lower_name
        self.use_column = deck_column and not options.lock_to_default_deck
        self._default_label = DEFAULT_DECK_LABEL
        if options.default_deck_id is not None:
            for deck in decks_by_lower_name.values():
                if deck.id == options.default_deck_id:
                    self._default_label = deck.name
                    break

    def resolve(self, raw_deck: str) -> tuple[DeckRef, str, bool]:
        """Return (deck_ref, label, is_warning)."""
        raw_deck = raw_deck.strip() if self.use_column else ""
        if raw_deck:
            match = self.decks_by_lower_name.get(raw_deck.lower())
            if match is not None:
                return ExistingDeck(match.id), match.name, False
            if self.options.create_missing_decks:
                return DeckByName(name_lower=raw_deck.lower(), label=raw_deck), raw_deck, False
            raise _RowRejected(f'Deck "{raw_deck}" not found.')
        if self.options.default_deck_id is not None:
            return ExistingDeck(self.options.default_deck_id), self._default_label, False
        return NoDeck(), FALLBACK_DECK_NAME, True


def validate(
    table: RawTable,
    mapping: FieldMapping,
    options: ImportOptions,
    existing_cards: Iterable[Card],
    existing_decks_by_lower_name: Mapping[str, Deck],
) -> ValidationResult:
    """Validate every row of a parsed table against a mapping and options.

    Args:
        table: Parsed CSV
        mapping: Column per canonical field
        options: User choices for decks, tags and duplicates
        existing_cards: Snapshot of cards already in storage (dedup seed)
        existing_decks_by_lower_name: Existing decks keyed by lowercased, trimmed name

    Returns:
        A new ValidationResult. A bad mapping yields a single synthetic error
        row and no per-row processing.
    """
    try:
        check_mapping(mapping, table.column_count)
    except MappingError as e:
        return ValidationResult.rejected(str(e))

    resolver = _DeckResolver(options, existing_decks_by_lower_name, mapping.deck is not None)
    seen: set[str] = {dedup_key(ExistingDeck(c.deck_id), c.front, c.back) for c in existing_cards}

    valid_rows: list[ValidRow] = []
    error_rows: list[ErrorRow] = []
    warnings = 0

    for row in table.rows:
        try:
            valid, warned = _validate_row(row, mapping, options, resolver, seen)
        except _RowRejected as e:
            error_rows.append(ErrorRow(row_number=row.row_number, reason=str(e)))
            continue
        valid_rows.append(valid)
        if warned:
            warnings += 1

    return ValidationResult(
        valid_rows=tuple(valid_rows),
        error_rows=tuple(error_rows),
        warn_rows=warnings,
    )


def _validate_row(
    row: RawRow,
    mapping: FieldMapping,
    options: ImportOptions,
    resolver: _DeckResolver,
    seen: set[str],
) -> tuple[ValidRow, bool]:
    front = row.value_at(mapping.front).strip()
    back = row.value_at(mapping.back).strip()
    notes = row.value_at(mapping.notes).strip()

    if not front or not back:
        raise _RowRejected("Missing required front or back value.")
    _check_lengths(front, back, notes)

    deck_ref, deck_label, warned = resolver.resolve(row.value_at(mapping.deck))

    tags: tuple[str, ...] = ()
    if mapping.tags is not None:
        tags = parse_tag_list(row.value_at(mapping.tags), options.tag_separator)

    if options.skip_duplicates:
        key = dedup_key(deck_ref, front, back)
        if key in seen:
            raise _RowRejected("Duplicate card in target deck.")
        seen.add(key)

    return (
        ValidRow(
            row_number=row.row_number,
            front=front,
            back=back,
            notes=notes,
            tags=tags,
            deck_ref=deck_ref,
            deck_label=deck_label,
        ),
        warned,
    )
