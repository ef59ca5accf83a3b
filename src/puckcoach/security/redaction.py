"""Redaction utilities for API keys in URLs, headers and payloads."""

from __future__ import annotations

import re
from typing import Any

REDACTED = "[REDACTED]"

# Patterns whose first group is a label to keep in front of the masked value.
_LABELLED_PATTERNS = [
    re.compile(r"(?i)([?&]key=)[A-Za-z0-9._-]+"),
    re.compile(r"(?i)\b(x-goog-api-key\s*[=:]\s*)[\"']?[A-Za-z0-9._-]{8,}[\"']?"),
    re.compile(r"(?i)\b(authorization\s*:\s*bearer\s+)[A-Za-z0-9._:-]+"),
    re.compile(r"(?i)\b(api[-_ ]?key\s*[=:]\s*)[\"']?[A-Za-z0-9._:-]{8,}[\"']?"),
]
_BARE_PATTERNS = [
    re.compile(r"\bAIza[0-9A-Za-z_-]{20,}"),
    re.compile(r"\b[ps]k-lf-[A-Za-z0-9:_-]{8,}\b"),
]
_SENSITIVE_KEYS = {"api_key", "apikey", "x-goog-api-key", "key", "secret_key"}


def redact_text(value: str) -> str:
    """Redact secrets from a text value."""
    redacted = value
    for pattern in _LABELLED_PATTERNS:
        redacted = pattern.sub(r"\1" + REDACTED, redacted)
    for pattern in _BARE_PATTERNS:
        redacted = pattern.sub(REDACTED, redacted)
    return redacted


def redact_mapping(value: Any) -> Any:
    """Recursively redact strings in nested dictionaries/lists.

    Values stored under credential-looking keys are masked whole.
    """
    if isinstance(value, str):
        return redact_text(value)
    if isinstance(value, dict):
        return {
            k: REDACTED
            if isinstance(k, str) and k.lower() in _SENSITIVE_KEYS and v
            else redact_mapping(v)
            for k, v in value.items()
        }
    if isinstance(value, list):
        return [redact_mapping(item) for item in value]
    return value
