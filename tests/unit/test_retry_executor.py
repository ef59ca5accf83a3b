"""Retry executor tests."""

from __future__ import annotations

import pytest

from puckcoach.errors import (
    OperationCancelledError,
    RequestTimeoutError,
    UpstreamHTTPError,
    is_retryable_failure,
)
from puckcoach.resilience import CancellationToken
from puckcoach.resilience.retry import RetryExecutor, RetryPolicy


def test_retry_executor_retries_once_then_succeeds() -> None:
    """A retryable failure should be retried once after the fixed delay."""
    attempts = {"count": 0}
    slept: list[float] = []

    def operation() -> str:
        attempts["count"] += 1
        if attempts["count"] == 1:
            raise RequestTimeoutError("slow")
        return "ok"

    executor = RetryExecutor(RetryPolicy(), sleep_fn=slept.append)
    result = executor.run(
        operation, stage_name="retry-test", should_retry=is_retryable_failure
    )
    assert result == "ok"
    assert attempts["count"] == 2
    assert slept == [1.5]


def test_retry_executor_gives_up_after_single_retry() -> None:
    """The second failure should surface unchanged."""
    attempts = {"count": 0}

    def operation() -> None:
        attempts["count"] += 1
        raise UpstreamHTTPError(503, f"unavailable {attempts['count']}")

    executor = RetryExecutor(RetryPolicy(), sleep_fn=lambda _s: None)
    with pytest.raises(UpstreamHTTPError, match="unavailable 2"):
        executor.run(operation, stage_name="retry-test", should_retry=is_retryable_failure)
    assert attempts["count"] == 2


def test_retry_executor_does_not_retry_rejected_failures() -> None:
    """Failures the predicate rejects should not be retried."""
    attempts = {"count": 0}
    slept: list[float] = []

    def operation() -> None:
        attempts["count"] += 1
        raise UpstreamHTTPError(400, "bad request")

    executor = RetryExecutor(RetryPolicy(), sleep_fn=slept.append)
    with pytest.raises(UpstreamHTTPError):
        executor.run(operation, stage_name="retry-test", should_retry=is_retryable_failure)
    assert attempts["count"] == 1
    assert slept == []


def test_retry_executor_checks_cancellation_after_wait() -> None:
    """A token cancelled during the retry wait should stop the next attempt."""
    token = CancellationToken()
    attempts = {"count": 0}

    def operation() -> None:
        attempts["count"] += 1
        raise RequestTimeoutError("slow")

    executor = RetryExecutor(RetryPolicy(), sleep_fn=lambda _s: token.cancel())
    with pytest.raises(OperationCancelledError):
        executor.run(
            operation,
            stage_name="retry-test",
            should_retry=is_retryable_failure,
            cancel_token=token,
        )
    assert attempts["count"] == 1


def test_retry_executor_applies_jitter() -> None:
    """Configured jitter should be added to the fixed delay."""
    slept: list[float] = []
    attempts = {"count": 0}

    def operation() -> str:
        attempts["count"] += 1
        if attempts["count"] == 1:
            raise RuntimeError("flaky")
        return "ok"

    executor = RetryExecutor(
        RetryPolicy(max_retries=1, delay_seconds=1.0, jitter_seconds=0.5),
        sleep_fn=slept.append,
        jitter_fn=lambda _a, _b: 0.25,
    )
    assert executor.run(operation, stage_name="jitter-test") == "ok"
    assert slept == [1.25]
