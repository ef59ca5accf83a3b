"""Consecutive-failure circuit breaker."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable

from puckcoach.schemas.enums import CircuitState

LOGGER = logging.getLogger(__name__)

_STATUS_TEXT = {
    CircuitState.CLOSED: "Normal",
    CircuitState.OPEN: "Blocked (too many failures)",
    CircuitState.HALF_OPEN: "Testing recovery",
}


@dataclass(frozen=True)
class CircuitBreakerState:
    """Point-in-time view of the breaker."""

    failure_count: int
    state: CircuitState
    opened_at: float | None


class CircuitBreaker:
    """Opens after ``failure_threshold`` consecutive failures.

    While open every request is refused. Once ``recovery_seconds`` have passed
    since opening, one trial request is let through (half-open); its success
    closes the breaker and its failure re-opens it. A trial request that
    never reports back frees its slot after another ``recovery_seconds``.
    """

    def __init__(
        self,
        *,
        failure_threshold: int = 3,
        recovery_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if failure_threshold < 1:
            raise ValueError("failure_threshold must be >= 1")
        self.failure_threshold = failure_threshold
        self.recovery_seconds = recovery_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._opened_at: float | None = None
        self._trial_started_at: float | None = None

    def allow_request(self) -> bool:
        """Return whether a request may be issued now."""
        with self._lock:
            now = self._clock()
            if self._state == CircuitState.CLOSED:
                return True
            if self._state == CircuitState.OPEN:
                assert self._opened_at is not None
                if now - self._opened_at < self.recovery_seconds:
                    return False
                self._state = CircuitState.HALF_OPEN
                self._trial_started_at = now
                LOGGER.info("Circuit half-open; allowing one trial request")
                return True
            assert self._trial_started_at is not None
            if now - self._trial_started_at >= self.recovery_seconds:
                self._trial_started_at = now
                return True
            return False

    def record_success(self) -> None:
        with self._lock:
            if self._state != CircuitState.CLOSED:
                LOGGER.info("Circuit closed after successful request")
            self._state = CircuitState.CLOSED
            self._failure_count = 0
            self._opened_at = None
            self._trial_started_at = None

    def record_failure(self) -> None:
        with self._lock:
            self._failure_count += 1
            if self._state == CircuitState.HALF_OPEN:
                self._open("trial request failed")
            elif (
                self._state == CircuitState.CLOSED
                and self._failure_count >= self.failure_threshold
            ):
                self._open(f"{self._failure_count} consecutive failures")

    def snapshot(self) -> CircuitBreakerState:
        with self._lock:
            return CircuitBreakerState(
                failure_count=self._failure_count,
                state=self._state,
                opened_at=self._opened_at,
            )

    @property
    def state(self) -> CircuitState:
        return self.snapshot().state

    @property
    def status_text(self) -> str:
        return _STATUS_TEXT[self.state]

    def _open(self, reason: str) -> None:
        self._state = CircuitState.OPEN
        self._opened_at = self._clock()
        self._trial_started_at = None
        LOGGER.warning("Circuit opened: %s", reason)
