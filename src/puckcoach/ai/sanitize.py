"""Cleanup of model text into decodable JSON.

Models asked for JSON still wrap it in markdown fences, prepend reasoning
blocks, append commentary, and emit a few recurring numeric and structural
artifacts. ``sanitize_json`` removes all of these; ``decode_model_output``
sanitizes and validates into a pydantic model in one step.
"""

from __future__ import annotations

import json
import re
from typing import Any, TypeVar

import orjson
from pydantic import BaseModel

MODEL_T = TypeVar("MODEL_T", bound=BaseModel)

_REASONING_BLOCK = re.compile(r"<(thinking|think)>.*?</\1>", re.DOTALL | re.IGNORECASE)
_FENCED_BLOCK = re.compile(r"```[A-Za-z0-9_-]*[ \t]*\r?\n?(.*?)\r?\n?```", re.DOTALL)
_PRIORITY_OVERFLOW = re.compile(r'"priority"\s*:\s*\d{10,}')
_INTEGER_OVERFLOW = re.compile(r":\s*-?\d{20,}(?![\d.])")
_LONG_FLOAT = re.compile(r":\s*(-?\d+\.\d{10,})")
_TRAILING_COMMA = re.compile(r",(\s*[}\]])")


def extract_json(response: str) -> str:
    """Return the JSON document embedded in ``response``."""
    cleaned = _REASONING_BLOCK.sub("", response)
    fenced = _FENCED_BLOCK.search(cleaned)
    if fenced:
        cleaned = fenced.group(1)
    cleaned = cleaned.strip()
    return _balanced_document(cleaned) or cleaned


def sanitize_json(response: str) -> str:
    """Extract and repair JSON text from a raw model response."""
    cleaned = extract_json(response)
    cleaned = _PRIORITY_OVERFLOW.sub('"priority": 1', cleaned)
    cleaned = _INTEGER_OVERFLOW.sub(": 1", cleaned)
    cleaned = _LONG_FLOAT.sub(lambda m: f": {float(m.group(1)):.2f}", cleaned)

    parsed = _loads_first_key_wins(cleaned)
    if parsed is None:
        repaired = _TRAILING_COMMA.sub(r"\1", cleaned)
        parsed = _loads_first_key_wins(repaired)
        if parsed is None:
            return cleaned
    return orjson.dumps(parsed).decode("utf-8")


def decode_model_output(response: str, model: type[MODEL_T]) -> MODEL_T:
    """Sanitize ``response`` and validate it as ``model``."""
    return model.model_validate_json(sanitize_json(response))


def _loads_first_key_wins(text: str) -> Any | None:
    try:
        return json.loads(text, object_pairs_hook=_first_key_wins)
    except ValueError:
        return None


def _first_key_wins(pairs: list[tuple[str, Any]]) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for key, value in pairs:
        result.setdefault(key, value)
    return result


def _balanced_document(text: str) -> str | None:
    """Slice the first complete top-level object or array out of ``text``."""
    starts = [pos for pos in (text.find("{"), text.find("[")) if pos != -1]
    if not starts:
        return None
    start = min(starts)
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char in "{[":
            depth += 1
        elif char in "}]":
            depth -= 1
            if depth == 0:
                return text[start : index + 1]
    return None
