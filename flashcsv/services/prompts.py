from __future__ import annotations

"""CSV authoring instructions.

Text a user can hand to whoever (or whatever) produces the CSV so that the
output imports cleanly: semicolon separated, header row first.
"""

__all__ = [
    "FORMAT_STYLES",
    "build_simple_prompt",
    "build_advanced_prompt",
    "build_format_prompt",
]

FORMAT_STYLES = ("simple", "advanced")

_HEADER_LINE = "Here is the required CSV format (semicolon separator):"
_QUOTING_LINE = "If a value contains ; or a line break, wrap that value in quotes."
_RETURN_LINE = "Return the result as a CSV file that I can download."


def build_simple_prompt() -> str:
    return "\n".join(
        [
            _HEADER_LINE,
            "front;back",
            "Include the header row as the first line.",
            _QUOTING_LINE,
            _RETURN_LINE,
        ]
    )


def build_advanced_prompt() -> str:
    # tags は '|' 区切りで案内 (options.tag_separator と揃えること)
    return "\n".join(
        [
            _HEADER_LINE,
            "front;back;deck;tags;notes",
            "Include the header row as the first line.",
            "tags should use | between tags (example: algebra|exam-prep).",
            "notes can be empty if not needed.",
            _QUOTING_LINE,
            _RETURN_LINE,
        ]
    )


def build_format_prompt(style: str) -> str:
    """Return the instructions for ``style`` ("simple" or "advanced").

    Raises:
        ValueError: Unknown style
    """
    if style == "simple":
        return build_simple_prompt()
    if style == "advanced":
        return build_advanced_prompt()
    raise ValueError(f"unknown format style: {style!r} (expected one of {', '.join(FORMAT_STYLES)})")
