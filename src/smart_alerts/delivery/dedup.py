"""
Content-based deduplication for smart alerts.

A smart alert is suppressed when its body fingerprint equals the one stored
for the same ``(alert_type, identifier)``. A changed body (new disk usage
figure, different error) goes through. Recovery clears the state so the
next outage starts fresh.

Storage: ``.smart_{alert_type}_{identifier}`` holds the fingerprint.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from smart_alerts.core.errors import CorruptStateError, InvalidArgumentError
from smart_alerts.core.hashing import fingerprint
from smart_alerts.core.storage import StateStore
from smart_alerts.framework.logging import get_logger

logger = get_logger(__name__)

DEDUP_KEY_PREFIX = ".smart_"


class DedupGate:
    """Fingerprint memory keyed by ``(alert_type, identifier)``."""

    def __init__(self, store: StateStore) -> None:
        self.store = store

    @staticmethod
    def key_for(alert_type: str, identifier: str) -> str:
        if not alert_type:
            raise InvalidArgumentError("alert_type must not be empty", field_name="alert_type")
        if not identifier:
            raise InvalidArgumentError("identifier must not be empty", field_name="identifier")
        return f"{DEDUP_KEY_PREFIX}{alert_type}_{identifier}"

    @contextmanager
    def locked(self, alert_type: str, identifier: str) -> Iterator[None]:
        with self.store.lock(self.key_for(alert_type, identifier)):
            yield

    def stored(self, alert_type: str, identifier: str) -> str | None:
        try:
            raw = self.store.read(self.key_for(alert_type, identifier))
        except CorruptStateError as e:
            logger.warning("dedup_state_unreadable", alert_type=alert_type, identifier=identifier, error=str(e))
            return None
        return raw.strip() if raw is not None else None

    def should_send(self, alert_type: str, identifier: str, body: str) -> bool:
        return self.stored(alert_type, identifier) != fingerprint(body)

    def remember(self, alert_type: str, identifier: str, body: str) -> None:
        self.store.write(self.key_for(alert_type, identifier), fingerprint(body))

    def has_state(self, alert_type: str, identifier: str) -> bool:
        return self.store.exists(self.key_for(alert_type, identifier))

    def clear(self, alert_type: str, identifier: str) -> bool:
        return self.store.delete(self.key_for(alert_type, identifier))
