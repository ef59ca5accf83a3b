"""Error taxonomy tests."""

from __future__ import annotations

import pytest

from puckcoach.errors import (
    INVALID_CONTENT_TIPS,
    AnalyzerError,
    CircuitOpenError,
    RequestTimeoutError,
    TransportError,
    UpstreamHTTPError,
    UpstreamResponseError,
    is_retryable_failure,
)
from puckcoach.schemas.enums import AnalyzerErrorKind


@pytest.mark.parametrize(
    ("exc", "retryable"),
    [
        (RequestTimeoutError("slow"), True),
        (TransportError("reset"), True),
        (UpstreamHTTPError(503, "unavailable"), True),
        (UpstreamHTTPError(429, "quota"), False),
        (UpstreamResponseError("bad body"), False),
        (CircuitOpenError("open"), False),
    ],
)
def test_retryable_failures(exc: Exception, retryable: bool) -> None:
    """Only timeouts, connection failures and 5xx are retried."""
    assert is_retryable_failure(exc) is retryable


def test_from_exception_maps_network_failures() -> None:
    """Connection-shaped failures become network issues."""
    assert AnalyzerError.from_exception(RequestTimeoutError("x")).kind == AnalyzerErrorKind.NETWORK_ISSUE
    assert (
        AnalyzerError.from_exception(RuntimeError("The Internet connection appears offline")).kind
        == AnalyzerErrorKind.NETWORK_ISSUE
    )
    mapped = AnalyzerError.from_exception(UpstreamHTTPError(500, "boom"))
    assert mapped.kind == AnalyzerErrorKind.AI_PROCESSING_FAILED
    assert "HTTP 500" in mapped.failure_reason


def test_invalid_content_needs_new_media() -> None:
    """Invalid content is the only kind that is not retryable."""
    error = AnalyzerError.invalid_content("No hockey stick visible")
    assert error.title == "Invalid Video"
    assert error.failure_reason == "No hockey stick visible"
    assert error.is_retryable is False
    assert error.action_label == "Record New Video"
    assert len(INVALID_CONTENT_TIPS) == 4
    for kind in AnalyzerErrorKind:
        if kind != AnalyzerErrorKind.INVALID_CONTENT:
            assert AnalyzerError(kind).action_label == "Try Again"
            assert AnalyzerError(kind).recovery_suggestion
