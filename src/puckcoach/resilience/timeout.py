"""Wall-clock caps for blocking calls."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeoutError
from typing import Callable, TypeVar

T = TypeVar("T")


def call_with_timeout(
    operation: Callable[[], T],
    *,
    timeout_seconds: float,
    on_timeout: Callable[[], None] | None = None,
) -> T:
    """Run ``operation`` on a worker thread and stop waiting after the cap.

    The worker is not interrupted; ``on_timeout`` lets the caller signal it
    (usually by cancelling its token) so it stops at its next check point.
    """
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="puckcoach-timeout")
    future = executor.submit(operation)
    try:
        return future.result(timeout=timeout_seconds)
    except FuturesTimeoutError as exc:
        future.cancel()
        if on_timeout is not None:
            on_timeout()
        raise TimeoutError(
            f"Operation timed out after {timeout_seconds:g} second(s)"
        ) from exc
    finally:
        executor.shutdown(wait=False)
