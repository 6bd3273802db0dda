"""
Grace-period scheduler.

Manifesto:
    Most failures fix themselves within a couple of minutes (a container
    restart, a DHCP renewal). A pending record is only promoted to an alert
    once it has been failing for the whole grace period, and a record that
    recovers before then never alerts at all.

State machine::

    PENDING --(age >= grace_period)--> ALERTED --(recovery & downtime >= threshold)--> [deleted]
    PENDING --(recovery, any downtime)------------------------------------------------> [deleted]
    ALERTED --(recovery, downtime < threshold)----------------------------------------> [deleted]

The scheduler owns only the first arrow; ``RecoveryTracker`` owns the rest.
It is driven externally (cron, a polling loop, ``smart-alerts check``).
"""

from __future__ import annotations

from smart_alerts.core.clock import Clock, SystemClock
from smart_alerts.core.errors import SmartAlertError
from smart_alerts.delivery.pipeline import DeliveryPipeline, SendOutcome
from smart_alerts.events.models import AlertRecord, SweepReport
from smart_alerts.events.store import EventStore
from smart_alerts.framework.logging import get_logger, scoped_context

logger = get_logger(__name__)


class GracePeriodScheduler:
    """Promotes pending records whose grace period has elapsed."""

    def __init__(
        self,
        events: EventStore,
        pipeline: DeliveryPipeline,
        *,
        grace_period_seconds: int = 180,
        clock: Clock | None = None,
    ) -> None:
        self.events = events
        self.pipeline = pipeline
        self.grace_period_seconds = grace_period_seconds
        self.clock = clock or SystemClock()

    def is_due(self, record: AlertRecord, now: int) -> bool:
        return not record.alert_sent and record.age(now) >= self.grace_period_seconds

    def sweep(self, now: int | None = None) -> SweepReport:
        """
        Run one pass over all pending records.

        A failure on one record is counted and logged; the sweep goes on.
        Listing errors (state directory gone) propagate to the caller.
        """
        now = self.clock.now() if now is None else now
        report = SweepReport()

        for record in self.events.list_pending():
            report.checked += 1
            if not self.is_due(record, now):
                report.waiting += 1
                continue

            with scoped_context(operation="sweep", event_type=record.event_type, identifier=record.identifier):
                try:
                    outcome = self._promote(record, now)
                except SmartAlertError as e:
                    report.errors += 1
                    logger.error("sweep_record_failed", error=str(e), category=e.category.value)
                    continue

            if outcome is None:
                continue
            report.promoted += 1
            report.promoted_keys.append(record.key)
            if not outcome.success:
                report.failed_deliveries += 1

        logger.info("sweep_completed", **report.to_dict())
        return report

    def _promote(self, record: AlertRecord, now: int) -> SendOutcome | None:
        with self.events.locked(record.event_type, record.identifier):
            # Recovered or promoted by another process since the listing
            current = self.events.get(record.event_type, record.identifier)
            if current is None or not self.is_due(current, now):
                logger.debug("sweep_record_changed")
                return None

            outcome = self.pipeline.send_smart(current.event_type, current.identifier, current.message)
            # A failed delivery still counts as the one attempt for this transition
            self.events.mark_alerted(current.event_type, current.identifier)
            logger.info("event_promoted", status=outcome.status.value, age=current.age(now))
            return outcome
