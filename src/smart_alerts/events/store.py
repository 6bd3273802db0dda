"""
Event store: one JSON file per ongoing condition.

Records live under ``{state_dir}/events/{event_type}_{identifier}.json``.
Methods are lock-free primitives over atomic file writes; a caller doing a
read-modify-write holds ``locked(event_type, identifier)`` around it.

Guardrails:
    ❌ DON'T: record = store.get(...); record.alert_sent = True; store.save(record)
              without the record lock - a concurrent recovery can be undone
    ✅ DO: with store.locked(t, i): store.mark_alerted(t, i)
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager

from smart_alerts.core.clock import Clock, SystemClock
from smart_alerts.core.errors import CorruptStateError, StorageUnavailableError
from smart_alerts.core.storage import StateStore
from smart_alerts.events.models import AlertRecord, RegistrationResult, require_key_fields
from smart_alerts.framework.logging import get_logger

logger = get_logger(__name__)

RECORD_SUFFIX = ".json"


class EventStore:
    """Persistence for ``AlertRecord`` values."""

    def __init__(self, store: StateStore, clock: Clock | None = None) -> None:
        self.store = store
        self.clock = clock or SystemClock()

    @staticmethod
    def key_for(event_type: str, identifier: str) -> str:
        require_key_fields(event_type, identifier)
        return f"{event_type}_{identifier}{RECORD_SUFFIX}"

    def ensure(self) -> None:
        self.store.ensure()

    @contextmanager
    def locked(self, event_type: str, identifier: str) -> Iterator[None]:
        with self.store.lock(self.key_for(event_type, identifier)):
            yield

    # ── Reads ────────────────────────────────────────────────────

    def get(self, event_type: str, identifier: str) -> AlertRecord | None:
        key = self.key_for(event_type, identifier)
        return self._load(key)

    def list_all(self) -> Iterator[AlertRecord]:
        """
        Lazily yield every readable record.

        Each call starts a fresh directory scan, so the sequence can be
        restarted. Corrupt files are logged and skipped.
        """
        for key in self.store.keys(f"*{RECORD_SUFFIX}"):
            try:
                record = self._load(key)
            except StorageUnavailableError as e:
                logger.warning("event_record_unreadable", key=key, error=str(e))
                continue
            if record is not None:
                yield record

    def list_pending(self) -> Iterator[AlertRecord]:
        return (record for record in self.list_all() if not record.alert_sent)

    # ── Writes ───────────────────────────────────────────────────

    def save(self, record: AlertRecord) -> None:
        key = self.key_for(record.event_type, record.identifier)
        self.store.write(key, json.dumps(record.to_dict(), indent=2, ensure_ascii=False))

    def register_occurrence(
        self,
        event_type: str,
        identifier: str,
        message: str,
        details: str = "",
    ) -> RegistrationResult:
        """
        Create the record, or refresh ``last_seen`` on an existing one.

        A refresh keeps the original message and details.
        """
        now = self.clock.now()
        record = self.get(event_type, identifier)
        created = record is None
        if record is None:
            record = AlertRecord(
                event_type=event_type,
                identifier=identifier,
                message=message,
                details=details or "",
                first_seen=now,
                last_seen=now,
            )
            logger.info("event_registered", event_type=event_type, identifier=identifier)
        else:
            record.last_seen = max(record.last_seen, now)
            logger.debug("event_refreshed", event_type=event_type, identifier=identifier)
        self.save(record)
        return RegistrationResult(
            event_type=event_type,
            identifier=identifier,
            created=created,
            grace_active=not record.alert_sent,
            record=record,
        )

    def mark_alerted(self, event_type: str, identifier: str) -> AlertRecord | None:
        """Idempotently flip a record to alerted; None if it no longer exists."""
        record = self.get(event_type, identifier)
        if record is None:
            return None
        if not record.alert_sent:
            record.alert_sent = True
            self.save(record)
        return record

    def remove(self, event_type: str, identifier: str) -> bool:
        return self.store.delete(self.key_for(event_type, identifier))

    # ── Internals ────────────────────────────────────────────────

    def _load(self, key: str) -> AlertRecord | None:
        try:
            raw = self.store.read(key)
        except CorruptStateError as e:
            logger.warning("event_record_corrupt", key=key, error=str(e))
            return None
        if raw is None:
            return None
        try:
            return AlertRecord.from_dict(json.loads(raw))
        except (ValueError, TypeError) as e:
            logger.warning("event_record_corrupt", key=key, error=str(e))
            return None
