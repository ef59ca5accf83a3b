"""Model output sanitizing tests."""

from __future__ import annotations

import orjson
import pytest
from pydantic import ValidationError

from puckcoach.ai.sanitize import decode_model_output, extract_json, sanitize_json
from puckcoach.schemas.results import ValidationResult

BARE = '{"is_valid": true, "confidence": 0.92, "reason": null}'


def test_fenced_json_with_commentary_decodes_like_bare_json() -> None:
    """Fences, reasoning tags and trailing commentary should not change the result."""
    wrapped = (
        "<thinking>Looking at the frames first.</thinking>\n"
        "Here is the result:\n```json\n"
        f"{BARE}\n"
        "```\nLet me know if you need more detail."
    )
    assert decode_model_output(wrapped, ValidationResult) == decode_model_output(
        BARE, ValidationResult
    )


def test_extract_json_slices_first_document_from_prose() -> None:
    """Unfenced JSON followed by prose should be cut at its closing brace."""
    text = 'Sure! {"a": "x}y", "b": [1, 2]} and that is all {"c": 3}'
    assert extract_json(text) == '{"a": "x}y", "b": [1, 2]}'


def test_sanitize_replaces_overflowing_numbers() -> None:
    """Huge integers and priorities collapse to 1; long floats round to 2 places."""
    raw = '{"priority": 12345678901, "count": 123456789012345678901234, "score": 0.123456789012}'
    parsed = orjson.loads(sanitize_json(raw))
    assert parsed == {"priority": 1, "count": 1, "score": 0.12}


def test_sanitize_removes_trailing_commas() -> None:
    """Trailing commas before closing brackets should be dropped."""
    parsed = orjson.loads(sanitize_json('{"items": [1, 2, ], "ok": true, }'))
    assert parsed == {"items": [1, 2], "ok": True}


def test_sanitize_keeps_first_duplicate_key() -> None:
    """Duplicate keys should collapse to their first occurrence."""
    parsed = orjson.loads(sanitize_json('{"reason": "first", "reason": "second"}'))
    assert parsed == {"reason": "first"}


def test_unrecoverable_output_fails_model_validation() -> None:
    """Non-JSON text should still surface as a validation error."""
    with pytest.raises(ValidationError):
        decode_model_output("I could not watch the video.", ValidationResult)
