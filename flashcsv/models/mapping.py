from __future__ import annotations

from dataclasses import dataclass, fields, replace
from enum import Enum

"""Field mapping model: which CSV column feeds which canonical card field."""

__all__ = [
    "CanonicalField",
    "FieldMapping",
]


class CanonicalField(Enum):
    """Card attributes a CSV column can be mapped onto.

    Declaration order is the inference priority order.
    """
    FRONT = "front"
    BACK = "back"
    DECK = "deck"
    TAGS = "tags"
    NOTES = "notes"


@dataclass(frozen=True)
class FieldMapping:
    """Column index per canonical field. None means unmapped."""
    front: int | None = None
    back: int | None = None
    deck: int | None = None
    tags: int | None = None
    notes: int | None = None

    def index_of(self, field: CanonicalField) -> int | None:
        return getattr(self, field.value)

    def with_overrides(self, **overrides: int | None) -> FieldMapping:
        """Return a copy with the given fields replaced (unknown names raise TypeError)."""
        return replace(self, **overrides)

    def as_dict(self) -> dict[str, int | None]:
        return {f.name: getattr(self, f.name) for f in fields(self)}
