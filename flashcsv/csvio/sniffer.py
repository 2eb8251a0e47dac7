from __future__ import annotations

import re

from ..models.table import DelimiterName
from .tokenizer import QuoteScanner

"""Delimiter sniffing.

Heuristic only: the guess is shown to the user, who can always pin the
delimiter explicitly.
"""

__all__ = [
    "CANDIDATES",
    "SAMPLE_LINES",
    "sniff",
    "delimiter_name",
]

# Declaration order doubles as tie-break order (comma wins ties)
CANDIDATES: tuple[str, ...] = (",", ";", "\t")
SAMPLE_LINES = 12

_LINE_SPLIT = re.compile(r"\r?\n")
_NAMES = {
    ",": DelimiterName.COMMA,
    ";": DelimiterName.SEMICOLON,
    "\t": DelimiterName.TAB,
}


def _count_unquoted(line: str, candidate: str) -> int:
    return sum(1 for ch, quoted in QuoteScanner(line) if not quoted and ch == candidate)


def sniff(text: str) -> str:
    """Guess the delimiter from the first lines of raw text.

    Each candidate is scored by its unquoted occurrences summed over the
    sample lines; quote state is tracked per line. The highest score wins,
    earlier candidates win ties.

    Examples:
        >>> sniff("a;b;c\\n1;2;3\\n")
        ';'
        >>> sniff("a,b\\n1,2\\n")
        ','
    """
    sample = _LINE_SPLIT.split(text)[:SAMPLE_LINES]
    best, best_score = CANDIDATES[0], -1
    for candidate in CANDIDATES:
        score = sum(_count_unquoted(line, candidate) for line in sample)
        if score > best_score:
            best, best_score = candidate, score
    return best


def delimiter_name(delimiter: str) -> DelimiterName:
    try:
        return _NAMES[delimiter]
    except KeyError:
        raise ValueError(f"unsupported delimiter: {delimiter!r}") from None
