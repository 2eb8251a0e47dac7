from __future__ import annotations

import re
from collections.abc import Mapping, Sequence

from ..models.mapping import CanonicalField, FieldMapping

"""Header -> canonical field mapping inference.

Headers are normalized and looked up in fixed alias vocabularies. The
result is only a suggestion; callers override any field before validation.
"""

__all__ = [
    "MappingError",
    "FIELD_ALIASES",
    "normalize_header_name",
    "infer_mapping",
    "resolve_overrides",
]


class MappingError(Exception):
    """Raised when the field mapping cannot be used (fatal for the whole file)."""


FIELD_ALIASES: dict[CanonicalField, frozenset[str]] = {
    CanonicalField.FRONT: frozenset({"front", "question", "prompt", "term", "word", "q", "card_front"}),
    CanonicalField.BACK: frozenset({"back", "answer", "definition", "meaning", "a", "card_back"}),
    CanonicalField.DECK: frozenset({"deck", "deck_name", "collection", "folder", "category"}),
    CanonicalField.TAGS: frozenset({"tags", "tag", "labels", "topics"}),
    CanonicalField.NOTES: frozenset({"notes", "note", "hint", "hints", "extra", "explanation"}),
}

_WHITESPACE = re.compile(r"\s+")
_NON_WORD = re.compile(r"[^\w]")


def normalize_header_name(name: str | None) -> str:
    """Trim, lowercase, whitespace runs to ``_``, drop non-word characters.

    >>> normalize_header_name("  Card Front! ")
    'card_front'
    """
    s = ("" if name is None else str(name)).strip().lower()
    s = _WHITESPACE.sub("_", s)
    return _NON_WORD.sub("", s)


def infer_mapping(headers: Sequence[str]) -> FieldMapping:
    """Guess the column for each canonical field.

    Fields are resolved in priority order; for each, the left-most header
    whose normalized form is an alias wins. front/back fall back to columns
    0 and 1 when nothing matched and those columns exist. Optional fields
    have no positional fallback.
    """
    normalized = [normalize_header_name(h) for h in headers]
    found: dict[str, int | None] = {
        "front": 0 if len(headers) > 0 else None,
        "back": 1 if len(headers) > 1 else None,
        "deck": None,
        "tags": None,
        "notes": None,
    }
    for field in CanonicalField:
        aliases = FIELD_ALIASES[field]
        for i, name in enumerate(normalized):
            if name in aliases:
                found[field.value] = i
                break
    return FieldMapping(**found)


def _resolve_column(headers: Sequence[str], field: str, ref: object) -> int | None:
    if ref is None or ref == "":
        return None
    if isinstance(ref, bool):
        raise MappingError(f"mapping for '{field}' must be a column name or index, got {ref!r}")
    if isinstance(ref, int):
        if 0 <= ref < len(headers):
            return ref
        raise MappingError(f"mapping for '{field}' points at column {ref}, table has {len(headers)} columns")
    name = str(ref)
    if name in headers:
        return list(headers).index(name)
    wanted = normalize_header_name(name)
    for i, h in enumerate(headers):
        if normalize_header_name(h) == wanted:
            return i
    raise MappingError(f"mapping for '{field}' names unknown column '{name}'")


def resolve_overrides(
    headers: Sequence[str],
    overrides: Mapping[str, object] | None,
    base: FieldMapping | None = None,
) -> FieldMapping:
    """Apply user overrides on top of an inferred (or given) mapping.

    Each override value is a column index, a header name (exact first, then
    normalized) or None/"" to leave the field unmapped.

    Raises:
        MappingError: Unknown field, unknown header or out-of-range index
    """
    mapping = base if base is not None else infer_mapping(headers)
    if not overrides:
        return mapping
    valid = {f.value for f in CanonicalField}
    resolved: dict[str, int | None] = {}
    for field, ref in overrides.items():
        if field not in valid:
            raise MappingError(f"unknown field in mapping: '{field}'")
        resolved[field] = _resolve_column(headers, field, ref)
    return mapping.with_overrides(**resolved)
