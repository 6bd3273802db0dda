"""
SmartAlertEngine - the public face of smart-alerts.

Manifesto:
    Health-check scripts should need exactly three calls: "this is failing",
    "check what is due" and "this recovered". The engine wires the event
    store, critical bypass, grace-period scheduler, recovery tracker and
    delivery pipeline together and applies the error policy in one place:

    - ``InvalidArgumentError`` goes back to the caller (bad input)
    - ``StorageUnavailableError`` is logged; the operation degrades to a no-op
    - delivery problems never raise; they come back in the outcome

Architecture:
    ::

        SmartAlertEngine
          ├── EventStore            {state_dir}/events/*.json
          ├── CriticalBypass  ──┐
          ├── GracePeriodScheduler ─┼─► DeliveryPipeline ─► AlertChannel | None
          ├── RecoveryTracker ──┘        {state_dir}/.rate_limit_* / .smart_*
          └── settings.enabled  (False: every operation is a no-op)

Examples:
    >>> engine = SmartAlertEngine.from_settings(load_settings(state_dir="/tmp/sa"))
    >>> engine.init()
    >>> engine.register_event("wan_down", "primary", "Primary WAN is down").grace_active
    True
"""

from __future__ import annotations

from dataclasses import replace

from smart_alerts.core.clock import Clock, SystemClock
from smart_alerts.core.errors import StorageUnavailableError
from smart_alerts.core.settings import SmartAlertSettings, get_settings
from smart_alerts.core.storage import FileStateStore, StateStore
from smart_alerts.delivery.pipeline import (
    PLAIN_MARKER,
    SMART_MARKER,
    DeliveryPipeline,
    SendOutcome,
    SendStatus,
)
from smart_alerts.events.critical import CriticalBypass
from smart_alerts.events.models import (
    AlertRecord,
    RecoveryOutcome,
    RegistrationResult,
    SweepReport,
    require_key_fields,
)
from smart_alerts.events.recovery import DEFAULT_RECOVERY_MESSAGE, RecoveryTracker
from smart_alerts.events.scheduler import GracePeriodScheduler
from smart_alerts.events.store import EventStore
from smart_alerts.framework.alerts import AlertChannel, build_channel
from smart_alerts.framework.logging import get_logger, scoped_context

logger = get_logger(__name__)


class SmartAlertEngine:
    """Facade over the event and delivery layers."""

    def __init__(
        self,
        *,
        events: EventStore,
        pipeline: DeliveryPipeline,
        critical: CriticalBypass,
        scheduler: GracePeriodScheduler,
        recovery: RecoveryTracker,
        enabled: bool = True,
    ) -> None:
        self.events = events
        self.pipeline = pipeline
        self.critical = critical
        self.scheduler = scheduler
        self.recovery = recovery
        self.enabled = enabled

    @classmethod
    def from_settings(
        cls,
        settings: SmartAlertSettings | None = None,
        channel: AlertChannel | None = None,
        *,
        clock: Clock | None = None,
        console: bool = False,
        event_state: StateStore | None = None,
        delivery_state: StateStore | None = None,
    ) -> SmartAlertEngine:
        """
        Build an engine from settings.

        Without an explicit ``channel`` the sink comes from ``build_channel``;
        state stores default to files under ``settings.state_dir``.

        Raises:
            ConfigurationError: Half-configured Telegram credentials
        """
        settings = settings or get_settings()
        clock = clock or SystemClock()
        if channel is None:
            channel = build_channel(settings, console=console)

        events = EventStore(event_state or FileStateStore(settings.events_dir), clock)
        pipeline = DeliveryPipeline.from_settings(
            settings, delivery_state or FileStateStore(settings.state_dir), channel, clock=clock
        )
        return cls(
            events=events,
            pipeline=pipeline,
            critical=CriticalBypass(pipeline, settings.critical_event_types),
            scheduler=GracePeriodScheduler(
                events, pipeline, grace_period_seconds=settings.grace_period_seconds, clock=clock
            ),
            recovery=RecoveryTracker(
                events,
                pipeline,
                recovery_threshold_seconds=settings.recovery_threshold_seconds,
                recovery_alerts_enabled=settings.recovery_alerts_enabled,
                clock=clock,
            ),
            enabled=settings.enabled,
        )

    # ── Layout ───────────────────────────────────────────────────

    def init(self) -> bool:
        """Create the state layout (idempotent). False if storage is unusable."""
        try:
            self.pipeline.store.ensure()
            self.events.ensure()
        except StorageUnavailableError as e:
            logger.error("state_init_failed", error=str(e), **e.context.to_dict())
            return False
        logger.debug("state_initialized")
        return True

    # ── Event operations ─────────────────────────────────────────

    def register_event(
        self,
        event_type: str,
        identifier: str,
        message: str,
        details: str = "",
    ) -> RegistrationResult:
        """
        Record an occurrence of a failing condition.

        New records of a critical type are alerted immediately; everything
        else waits for ``check_pending_alerts``.

        Raises:
            InvalidArgumentError: Empty event_type or identifier, or a key
                too long to store
        """
        require_key_fields(event_type, identifier)
        critical = self.critical.is_critical(event_type)
        if not self.enabled:
            return RegistrationResult(event_type, identifier, created=False, grace_active=False, critical=critical)

        with scoped_context(operation="register_event", event_type=event_type, identifier=identifier):
            try:
                with self.events.locked(event_type, identifier):
                    result = self.events.register_occurrence(event_type, identifier, message, details)
                    if not (result.created and critical):
                        return replace(result, critical=critical)

                    delivery = self.critical.fire(result.record)
                    record = self.events.mark_alerted(event_type, identifier)
                    return replace(result, critical=True, grace_active=False, record=record, delivery=delivery)
            except StorageUnavailableError as e:
                logger.error("register_event_failed", error=str(e))
                return RegistrationResult(
                    event_type, identifier, created=False, grace_active=False, critical=critical
                )

    def check_pending_alerts(self) -> SweepReport:
        """Run one grace-period sweep."""
        if not self.enabled:
            return SweepReport()
        with scoped_context(operation="sweep"):
            try:
                return self.scheduler.sweep()
            except StorageUnavailableError as e:
                logger.error("sweep_failed", error=str(e))
                return SweepReport(errors=1)

    def register_recovery(
        self,
        event_type: str,
        identifier: str,
        message: str = DEFAULT_RECOVERY_MESSAGE,
    ) -> RecoveryOutcome:
        """
        Report that a condition cleared.

        Raises:
            InvalidArgumentError: Empty event_type or identifier
        """
        require_key_fields(event_type, identifier)
        if not self.enabled:
            return RecoveryOutcome(event_type=event_type, identifier=identifier, found=False)

        with scoped_context(operation="register_recovery", event_type=event_type, identifier=identifier):
            try:
                return self.recovery.register_recovery(event_type, identifier, message)
            except StorageUnavailableError as e:
                logger.error("register_recovery_failed", error=str(e))
                return RecoveryOutcome(event_type=event_type, identifier=identifier, found=False)

    def get_event(self, event_type: str, identifier: str) -> AlertRecord | None:
        return self.events.get(event_type, identifier)

    def list_events(self, *, pending_only: bool = False) -> list[AlertRecord]:
        records = self.events.list_pending() if pending_only else self.events.list_all()
        return sorted(records, key=lambda r: (r.first_seen, r.key))

    # ── Direct delivery ──────────────────────────────────────────

    def send_alert(
        self,
        alert_type: str,
        body: str,
        marker: str | None = None,
        prefix: str | None = None,
    ) -> SendOutcome:
        """Rate-limited alert without an event record."""
        if not self.enabled:
            return SendOutcome(SendStatus.DISABLED, alert_type)
        with scoped_context(operation="send_alert", alert_type=alert_type):
            try:
                return self.pipeline.send_plain(alert_type, body, marker or PLAIN_MARKER, prefix)
            except StorageUnavailableError as e:
                logger.error("send_alert_failed", error=str(e))
                return SendOutcome(SendStatus.FAILED, alert_type, error=e)

    def send_smart_alert(
        self,
        alert_type: str,
        identifier: str,
        body: str,
        marker: str | None = None,
    ) -> SendOutcome:
        """Deduplicated alert without an event record."""
        if not self.enabled:
            return SendOutcome(SendStatus.DISABLED, alert_type)
        with scoped_context(operation="send_smart_alert", alert_type=alert_type, identifier=identifier):
            try:
                return self.pipeline.send_smart(alert_type, identifier, body, marker or SMART_MARKER)
            except StorageUnavailableError as e:
                logger.error("send_smart_alert_failed", error=str(e))
                return SendOutcome(SendStatus.FAILED, alert_type, error=e)

    def send_recovery_alert(self, alert_type: str, identifier: str, body: str) -> SendOutcome:
        """Recovery notice for a prior smart alert."""
        if not self.enabled:
            return SendOutcome(SendStatus.DISABLED, alert_type)
        with scoped_context(operation="send_recovery_alert", alert_type=alert_type, identifier=identifier):
            try:
                return self.pipeline.send_recovery(alert_type, identifier, body)
            except StorageUnavailableError as e:
                logger.error("send_recovery_alert_failed", error=str(e))
                return SendOutcome(SendStatus.FAILED, alert_type, error=e)

    def clear_rate_limit(self, alert_type: str) -> bool:
        """Forget the cooldown for ``alert_type``; True if one was stored."""
        if not self.enabled:
            return False
        try:
            return self.pipeline.clear_rate_limit(alert_type)
        except StorageUnavailableError as e:
            logger.error("clear_rate_limit_failed", alert_type=alert_type, error=str(e))
            return False
