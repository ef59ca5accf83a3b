"""Resilience helpers: retries, circuit breaking, timeouts, cancellation."""

from puckcoach.resilience.cancellation import CancellationToken
from puckcoach.resilience.circuit_breaker import CircuitBreaker, CircuitBreakerState
from puckcoach.resilience.retry import RetryExecutor, RetryPolicy
from puckcoach.resilience.timeout import call_with_timeout

__all__ = [
    "CancellationToken",
    "CircuitBreaker",
    "CircuitBreakerState",
    "RetryExecutor",
    "RetryPolicy",
    "call_with_timeout",
]
