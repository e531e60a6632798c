"""Best-effort extraction of JSON values embedded in generated text.

Language models rarely return bare JSON: answers arrive wrapped in prose or
Markdown fences. These helpers locate the first substring that decodes as the
requested JSON shape and ignore everything around it.
"""

from __future__ import annotations

import json
from typing import Any

from .errors import ResponseParseError

_DECODER = json.JSONDecoder()


def _first_decoded(text: str, opener: str, expected: type) -> Any:
    start = text.find(opener)
    while start != -1:
        try:
            value, _ = _DECODER.raw_decode(text, start)
        except json.JSONDecodeError:
            value = None
        if isinstance(value, expected):
            return value
        start = text.find(opener, start + 1)
    raise ResponseParseError(f"No JSON {expected.__name__} found in response.")


def extract_json_array(text: str | None) -> list[Any]:
    """Return the first JSON array contained in ``text``.

    Raises:
        ResponseParseError: If ``text`` is empty or holds no decodable array.
    """
    if not text:
        raise ResponseParseError("Empty response.")
    return _first_decoded(text, "[", list)


def extract_json_object(text: str | None) -> dict[str, Any]:
    """Return the first JSON object contained in ``text``.

    Raises:
        ResponseParseError: If ``text`` is empty or holds no decodable object.
    """
    if not text:
        raise ResponseParseError("Empty response.")
    return _first_decoded(text, "{", dict)


__all__ = ["extract_json_array", "extract_json_object"]
