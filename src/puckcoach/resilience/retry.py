"""Retry execution helper with a fixed delay and a retry predicate."""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from typing import Callable, TypeVar

from puckcoach.resilience.cancellation import CancellationToken

T = TypeVar("T")

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """Retry policy: ``max_retries`` extra attempts, each after ``delay_seconds``."""

    max_retries: int = 1
    delay_seconds: float = 1.5
    jitter_seconds: float = 0.0

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1


class RetryExecutor:
    """Execute callables, retrying only the failures ``should_retry`` accepts."""

    def __init__(
        self,
        policy: RetryPolicy,
        *,
        sleep_fn: Callable[[float], None] = time.sleep,
        jitter_fn: Callable[[float, float], float] = random.uniform,
    ) -> None:
        self.policy = policy
        self._sleep = sleep_fn
        self._jitter = jitter_fn

    def run(
        self,
        operation: Callable[[], T],
        *,
        stage_name: str,
        should_retry: Callable[[Exception], bool] = lambda _exc: True,
        cancel_token: CancellationToken | None = None,
    ) -> T:
        """Run ``operation``; re-raise the last failure once attempts run out."""
        if self.policy.max_retries < 0:
            raise ValueError("max_retries must be >= 0")

        attempt = 1
        while True:
            if cancel_token is not None:
                cancel_token.raise_if_cancelled(stage_name)
            try:
                return operation()
            except Exception as exc:
                if attempt >= self.policy.max_attempts or not should_retry(exc):
                    raise
                delay = self._delay()
                LOGGER.info(
                    "%s attempt %d failed (%s); retrying in %.2fs",
                    stage_name,
                    attempt,
                    type(exc).__name__,
                    delay,
                )
                self._sleep(delay)
                attempt += 1

    def _delay(self) -> float:
        jitter = (
            self._jitter(0.0, self.policy.jitter_seconds)
            if self.policy.jitter_seconds > 0
            else 0.0
        )
        return max(0.0, self.policy.delay_seconds + jitter)
