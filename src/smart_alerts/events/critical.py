"""Critical event types skip the grace period."""

from __future__ import annotations

from collections.abc import Iterable

from smart_alerts.core.settings import DEFAULT_CRITICAL_EVENT_TYPES
from smart_alerts.delivery.pipeline import DeliveryPipeline, SendOutcome
from smart_alerts.events.models import AlertRecord
from smart_alerts.framework.logging import get_logger

logger = get_logger(__name__)

CRITICAL_BODY_PREFIX = "CRITICAL: "


class CriticalBypass:
    """
    Immediate delivery for a fixed set of event types.

    Only the occurrence that creates a record fires; refreshes of an
    already-alerted critical record stay silent like any other event.
    """

    def __init__(
        self,
        pipeline: DeliveryPipeline,
        critical_event_types: Iterable[str] = DEFAULT_CRITICAL_EVENT_TYPES,
    ) -> None:
        self.pipeline = pipeline
        self.critical_event_types = frozenset(critical_event_types)

    def is_critical(self, event_type: str) -> bool:
        return event_type in self.critical_event_types

    def fire(self, record: AlertRecord) -> SendOutcome:
        logger.warning("critical_event_bypassing_grace", event_type=record.event_type, identifier=record.identifier)
        return self.pipeline.send_critical(
            record.event_type,
            record.identifier,
            f"{CRITICAL_BODY_PREFIX}{record.message}",
        )
