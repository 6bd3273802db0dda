"""
Clock capability (stdlib-only).

The engine never calls ``time.time()`` directly; it asks an injected clock.
Persisted timestamps are integer Unix seconds, matching the state file
format, so every clock returns ``int``.

Examples:
    >>> clock = FakeClock(start=1_000)
    >>> clock.now()
    1000
    >>> clock.advance(180)
    1180
"""

from __future__ import annotations

import time
from datetime import UTC, datetime
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Source of the current time in Unix seconds."""

    def now(self) -> int:
        """Current Unix timestamp in whole seconds."""
        ...


class SystemClock:
    """Wall-clock time."""

    def now(self) -> int:
        return int(time.time())


class FakeClock:
    """Manually driven clock for tests and dry runs."""

    def __init__(self, start: int = 0) -> None:
        self._now = int(start)

    def now(self) -> int:
        return self._now

    def advance(self, seconds: int) -> int:
        """Move the clock forward and return the new time."""
        self._now += int(seconds)
        return self._now

    def set(self, timestamp: int) -> None:
        self._now = int(timestamp)


def to_iso8601(timestamp: int) -> str:
    """Render a Unix timestamp as an ISO-8601 UTC string."""
    return datetime.fromtimestamp(timestamp, UTC).strftime("%Y-%m-%dT%H:%M:%SZ")
