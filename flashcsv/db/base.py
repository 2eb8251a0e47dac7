from __future__ import annotations

import re
import secrets
import time
from typing import Any

"""Helpers shared by the storage backends (ids, timestamps, tag hygiene)."""

__all__ = [
    "StorageError",
    "now_ms",
    "new_id",
    "normalize_tags",
]

_WHITESPACE = re.compile(r"\s+")


class StorageError(Exception):
    """Raised when a storage backend cannot load or persist data."""


def now_ms() -> int:
    return int(time.time() * 1000)


def new_id(prefix: str = "id") -> str:
    return f"{prefix}_{secrets.token_hex(6)}_{now_ms():x}"


def normalize_tags(tags: Any) -> list[str]:
    """Trim, collapse whitespace, drop empties, de-duplicate (order kept)."""
    if not isinstance(tags, (list, tuple)):
        return []
    out: dict[str, None] = {}
    for t in tags:
        s = _WHITESPACE.sub(" ", ("" if t is None else str(t)).strip())
        if s:
            out.setdefault(s, None)
    return list(out)
