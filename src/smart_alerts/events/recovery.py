"""Recovery tracker: downtime gating and record retirement."""

from __future__ import annotations

from smart_alerts.core.clock import Clock, SystemClock
from smart_alerts.core.errors import StorageUnavailableError
from smart_alerts.delivery.pipeline import DeliveryPipeline, SendOutcome
from smart_alerts.events.models import RecoveryOutcome, require_key_fields
from smart_alerts.events.store import EventStore
from smart_alerts.framework.logging import get_logger

logger = get_logger(__name__)

DEFAULT_RECOVERY_MESSAGE = "Service recovered"


class RecoveryTracker:
    """
    Retires records when their condition clears.

    A recovery notification goes out only when the record was alerted and
    the outage lasted at least ``recovery_threshold_seconds``. The record is
    deleted either way, which also cancels a still-pending condition.
    """

    def __init__(
        self,
        events: EventStore,
        pipeline: DeliveryPipeline,
        *,
        recovery_threshold_seconds: int = 300,
        recovery_alerts_enabled: bool = True,
        clock: Clock | None = None,
    ) -> None:
        self.events = events
        self.pipeline = pipeline
        self.recovery_threshold_seconds = recovery_threshold_seconds
        self.recovery_alerts_enabled = recovery_alerts_enabled
        self.clock = clock or SystemClock()

    def register_recovery(
        self,
        event_type: str,
        identifier: str,
        message: str = DEFAULT_RECOVERY_MESSAGE,
    ) -> RecoveryOutcome:
        require_key_fields(event_type, identifier)
        message = message or DEFAULT_RECOVERY_MESSAGE

        with self.events.locked(event_type, identifier):
            record = self.events.get(event_type, identifier)
            if record is None:
                logger.debug("recovery_without_record", event_type=event_type, identifier=identifier)
                return RecoveryOutcome(event_type=event_type, identifier=identifier, found=False)

            downtime = max(0, record.age(self.clock.now()))
            delivery: SendOutcome | None = None
            if (
                record.alert_sent
                and downtime >= self.recovery_threshold_seconds
                and self.recovery_alerts_enabled
            ):
                try:
                    delivery = self.pipeline.send_recovery(
                        event_type, identifier, f"{message} (downtime: {downtime}s)"
                    )
                except StorageUnavailableError as e:
                    logger.error("recovery_delivery_state_unavailable", event_type=event_type, error=str(e))

            removed = self.events.remove(event_type, identifier)

        logger.info(
            "event_recovered",
            event_type=event_type,
            identifier=identifier,
            downtime=downtime,
            was_alerted=record.alert_sent,
            notified=delivery is not None and delivery.delivered,
        )
        return RecoveryOutcome(
            event_type=event_type,
            identifier=identifier,
            found=True,
            downtime=downtime,
            was_alerted=record.alert_sent,
            removed=removed,
            delivery=delivery,
        )
