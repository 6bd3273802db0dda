"""
Per-alert-type cooldown.

Manifesto:
    A flapping check must not page someone every minute. The limiter keeps
    one timestamp per alert type and refuses sends until the cooldown has
    passed since the last *successful* delivery.

Storage:
    ``.rate_limit_{alert_type}`` holds the last send time as a plain integer.
    A value that does not parse is treated as "never sent", so a corrupt
    file can cost at most one extra notification.

Guardrails:
    ❌ DON'T: call allow() and record() without holding ``locked(alert_type)``
    ✅ DO: with limiter.locked(t): if limiter.allow(t, now): ...; limiter.record(t, now)
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from smart_alerts.core.errors import CorruptStateError, InvalidArgumentError
from smart_alerts.core.storage import StateStore
from smart_alerts.framework.logging import get_logger

logger = get_logger(__name__)

RATE_LIMIT_KEY_PREFIX = ".rate_limit_"


class CooldownRateLimiter:
    """Fixed cooldown per alert type, persisted in a ``StateStore``."""

    def __init__(self, store: StateStore, cooldown_seconds: int) -> None:
        if cooldown_seconds < 0:
            raise InvalidArgumentError("Cooldown must not be negative", field_name="cooldown_seconds")
        self.store = store
        self.cooldown_seconds = cooldown_seconds

    @staticmethod
    def key_for(alert_type: str) -> str:
        if not alert_type:
            raise InvalidArgumentError("alert_type must not be empty", field_name="alert_type")
        return f"{RATE_LIMIT_KEY_PREFIX}{alert_type}"

    @contextmanager
    def locked(self, alert_type: str) -> Iterator[None]:
        with self.store.lock(self.key_for(alert_type)):
            yield

    def last_sent(self, alert_type: str) -> int | None:
        try:
            raw = self.store.read(self.key_for(alert_type))
        except CorruptStateError as e:
            logger.warning("rate_limit_state_unparseable", alert_type=alert_type, error=str(e))
            return None
        if raw is None:
            return None
        try:
            return int(raw.strip())
        except ValueError:
            logger.warning("rate_limit_state_unparseable", alert_type=alert_type, value=raw[:32])
            return None

    def allow(self, alert_type: str, now: int) -> bool:
        last = self.last_sent(alert_type)
        return last is None or now - last >= self.cooldown_seconds

    def remaining(self, alert_type: str, now: int) -> int:
        """Seconds until ``allow`` turns true again (0 when already allowed)."""
        last = self.last_sent(alert_type)
        if last is None:
            return 0
        return max(0, self.cooldown_seconds - (now - last))

    def record(self, alert_type: str, now: int) -> None:
        self.store.write(self.key_for(alert_type), str(int(now)))

    def clear(self, alert_type: str) -> bool:
        """Forget the last send so the next alert goes out immediately."""
        removed = self.store.delete(self.key_for(alert_type))
        if removed:
            logger.info("rate_limit_cleared", alert_type=alert_type)
        return removed
