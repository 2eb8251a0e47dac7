from __future__ import annotations

import pytest

from flashcsv.csvio.parser import parse_file
from flashcsv.mapping.infer import infer_mapping
from flashcsv.services.prompts import build_advanced_prompt, build_format_prompt, build_simple_prompt


def test_simple_prompt():
    lines = build_simple_prompt().splitlines()
    assert lines[0] == "Here is the required CSV format (semicolon separator):"
    assert lines[1] == "front;back"
    assert lines[-1] == "Return the result as a CSV file that I can download."


def test_advanced_prompt_header_is_importable():
    text = build_advanced_prompt()
    assert "tags should use | between tags (example: algebra|exam-prep)." in text
    header = text.splitlines()[1]
    table = parse_file(header + "\n")
    assert table.delimiter == ";"
    assert infer_mapping(table.headers).as_dict() == {"front": 0, "back": 1, "deck": 2, "tags": 3, "notes": 4}


def test_build_format_prompt_dispatch():
    assert build_format_prompt("simple") == build_simple_prompt()
    assert build_format_prompt("advanced") == build_advanced_prompt()
    with pytest.raises(ValueError):
        build_format_prompt("fancy")
