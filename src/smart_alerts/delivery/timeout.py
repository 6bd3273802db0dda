"""Bounded waits for alert sink calls.

A slow sink must not stall a sweep over many pending records, so each
delivery runs on a worker thread and the caller waits at most
``timeout_seconds`` for it.

Examples:
    >>> run_with_timeout(channel.send, 10.0, args=(alert,), operation="telegram")
"""

from __future__ import annotations

import concurrent.futures
import time
from collections.abc import Callable
from typing import Any, TypeVar

from smart_alerts.core.errors import DeliveryTimeoutError

T = TypeVar("T")


def run_with_timeout(
    func: Callable[..., T],
    timeout_seconds: float,
    operation: str | None = None,
    args: tuple[Any, ...] | None = None,
    kwargs: dict[str, Any] | None = None,
) -> T:
    """Run a callable on a worker thread, waiting at most ``timeout_seconds``.

    Raises:
        DeliveryTimeoutError: If the callable has not returned in time
        Exception: Any exception raised by func
    """
    if timeout_seconds <= 0:
        raise ValueError(f"Timeout must be positive, got {timeout_seconds}")

    start = time.monotonic()
    executor = concurrent.futures.ThreadPoolExecutor(max_workers=1, thread_name_prefix="smart-alerts-send")
    try:
        future = executor.submit(func, *(args or ()), **(kwargs or {}))
        try:
            return future.result(timeout=timeout_seconds)
        except concurrent.futures.TimeoutError:
            # The thread keeps running; it cannot be killed, only abandoned
            elapsed = time.monotonic() - start
            raise DeliveryTimeoutError(
                timeout_seconds,
                f"{operation or getattr(func, '__name__', 'delivery')} timed out after {elapsed:.1f}s",
            ) from None
    finally:
        executor.shutdown(wait=False)
