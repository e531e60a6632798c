"""Tests for best-effort JSON extraction from generated text."""

import pytest

from filechat.llm import ResponseParseError, extract_json_array, extract_json_object


def test_extract_array_from_prose_wrapped_answer() -> None:
    text = "Sure! The relevant files are:\n```json\n[3, 0, 12]\n```\nLet me know."

    assert extract_json_array(text) == [3, 0, 12]


def test_extract_array_skips_brackets_that_are_not_json() -> None:
    text = "Entries [see below] ranked: [1, 2]"

    assert extract_json_array(text) == [1, 2]


def test_extract_array_returns_first_of_several() -> None:
    assert extract_json_array("first [4] then [5, 6]") == [4]


def test_extract_object_ignores_leading_array() -> None:
    text = 'Options [1, 2] considered. Answer: {"action": "search", "query": "tax"}'

    assert extract_json_object(text) == {"action": "search", "query": "tax"}


def test_extract_object_handles_nested_values() -> None:
    text = 'Plan: {"summary": "ok", "suggestions": [{"action": "move", "target": "a.pdf"}]} done'

    payload = extract_json_object(text)

    assert payload["suggestions"][0]["target"] == "a.pdf"


@pytest.mark.parametrize("text", ["", None, "no json here", "{broken", "[1, 2"])
def test_extract_raises_when_nothing_decodes(text) -> None:
    with pytest.raises(ResponseParseError):
        extract_json_array(text)
    with pytest.raises(ResponseParseError):
        extract_json_object(text)


def test_parse_error_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        extract_json_object("nothing")
