"""Circuit breaker state machine tests."""

from __future__ import annotations

from puckcoach.resilience.circuit_breaker import CircuitBreaker
from puckcoach.schemas.enums import CircuitState


class _Clock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def _tripped(clock: _Clock) -> CircuitBreaker:
    breaker = CircuitBreaker(failure_threshold=3, recovery_seconds=60.0, clock=clock)
    for _ in range(3):
        assert breaker.allow_request()
        breaker.record_failure()
    return breaker


def test_breaker_opens_after_three_consecutive_failures() -> None:
    """The third consecutive failure should open the breaker."""
    clock = _Clock()
    breaker = CircuitBreaker(failure_threshold=3, recovery_seconds=60.0, clock=clock)
    breaker.record_failure()
    breaker.record_failure()
    assert breaker.state == CircuitState.CLOSED
    breaker.record_failure()
    snapshot = breaker.snapshot()
    assert snapshot.state == CircuitState.OPEN
    assert snapshot.failure_count == 3
    assert snapshot.opened_at == 1000.0
    assert breaker.allow_request() is False


def test_success_resets_failure_count() -> None:
    """Failures separated by a success should not open the breaker."""
    breaker = CircuitBreaker(clock=_Clock())
    breaker.record_failure()
    breaker.record_failure()
    breaker.record_success()
    breaker.record_failure()
    breaker.record_failure()
    assert breaker.state == CircuitState.CLOSED
    assert breaker.snapshot().failure_count == 2


def test_breaker_allows_exactly_one_trial_request_after_recovery() -> None:
    """After the recovery window only one trial request should pass."""
    clock = _Clock()
    breaker = _tripped(clock)

    clock.now = 1059.5
    assert breaker.allow_request() is False

    clock.now = 1060.0
    assert breaker.allow_request() is True
    assert breaker.state == CircuitState.HALF_OPEN
    assert breaker.allow_request() is False


def test_trial_success_closes_breaker() -> None:
    """A successful trial request should close the breaker and reset the counter."""
    clock = _Clock()
    breaker = _tripped(clock)
    clock.now += 60
    assert breaker.allow_request()
    breaker.record_success()
    snapshot = breaker.snapshot()
    assert snapshot.state == CircuitState.CLOSED
    assert snapshot.failure_count == 0
    assert snapshot.opened_at is None
    assert breaker.allow_request()


def test_trial_failure_reopens_breaker() -> None:
    """A failed trial request should re-open the breaker for a full recovery window."""
    clock = _Clock()
    breaker = _tripped(clock)
    clock.now += 60
    assert breaker.allow_request()
    breaker.record_failure()
    assert breaker.state == CircuitState.OPEN
    assert breaker.snapshot().opened_at == clock.now
    clock.now += 30
    assert breaker.allow_request() is False


def test_abandoned_trial_slot_expires() -> None:
    """A trial request that never reports back should free its slot after a window."""
    clock = _Clock()
    breaker = _tripped(clock)
    clock.now += 60
    assert breaker.allow_request()
    clock.now += 60
    assert breaker.allow_request()


def test_status_text_tracks_state() -> None:
    """Status text should describe the current state."""
    clock = _Clock()
    breaker = CircuitBreaker(clock=clock)
    assert breaker.status_text == "Normal"
    breaker = _tripped(clock)
    assert breaker.status_text == "Blocked (too many failures)"
