"""
Delivery pipeline: rate limiter + dedup gate + alert sink.

Manifesto:
    Every notification leaves through exactly one of three doors:

    - **plain**: cooldown only, for one-off alerts
    - **smart**: content dedup first, then the plain door under
      ``{alert_type}_{identifier}``
    - **recovery**: only when something was alerted before; clears the
      dedup memory and announces under ``{alert_type}_{identifier}_recovered``
      so recoveries have their own cooldown bucket

    Delivery is best-effort and never raises: sink errors, rejections and
    timeouts come back as a FAILED ``SendOutcome`` carrying a
    ``DeliveryFailureError``. State is only recorded for messages that were
    actually delivered.

Architecture:
    ::

        send_smart ──► DedupGate ──┐
        send_recovery ─► DedupGate ─┤
        send_critical ─────────────┤
        send_plain ────────────────┴─► CooldownRateLimiter ─► run_with_timeout(channel.send)

    Locks are taken dedup key first, then rate key. The event layer holds
    its record lock outside both.

Tags:
    delivery, rate-limit, dedup, recovery, smart-alerts
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from smart_alerts.core.clock import Clock, SystemClock
from smart_alerts.core.errors import DeliveryFailureError, InvalidArgumentError, SmartAlertError
from smart_alerts.core.settings import SmartAlertSettings
from smart_alerts.core.storage import StateStore
from smart_alerts.delivery.dedup import DedupGate
from smart_alerts.delivery.rate_limit import CooldownRateLimiter
from smart_alerts.delivery.timeout import run_with_timeout
from smart_alerts.framework.alerts import Alert, AlertChannel, AlertSeverity, DeliveryResult
from smart_alerts.framework.logging import get_logger

logger = get_logger(__name__)

PLAIN_MARKER = "📟"
SMART_MARKER = "🔔"
CRITICAL_MARKER = "🚨"
RECOVERY_MARKER = "✅"
RECOVERY_PREFIX = "[Recovery]"
RECOVERY_SUFFIX = "_recovered"


class SendStatus(str, Enum):
    """What happened to one send request."""

    DELIVERED = "delivered"
    RATE_LIMITED = "rate_limited"
    DUPLICATE = "duplicate"
    DISABLED = "disabled"
    NOTHING_TO_RECOVER = "nothing_to_recover"
    NO_CHANNEL = "no_channel"
    FILTERED = "filtered"
    FAILED = "failed"


@dataclass(frozen=True)
class SendOutcome:
    """
    Result of a pipeline send.

    Everything except FAILED is a success: suppression (rate limit, dedup,
    disabled recovery) is the pipeline doing its job.
    """

    status: SendStatus
    alert_type: str
    text: str | None = None
    error: SmartAlertError | None = None

    @property
    def success(self) -> bool:
        return self.status is not SendStatus.FAILED

    @property
    def delivered(self) -> bool:
        return self.status is SendStatus.DELIVERED

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "status": self.status.value,
            "alert_type": self.alert_type,
            "success": self.success,
        }
        if self.text is not None:
            result["text"] = self.text
        if self.error is not None:
            result["error"] = self.error.to_dict()
        return result


class DeliveryPipeline:
    """Composes the rate limiter, dedup gate and optional sink."""

    def __init__(
        self,
        store: StateStore,
        channel: AlertChannel | None = None,
        *,
        clock: Clock | None = None,
        rate_limit_seconds: int = 1800,
        message_prefix: str = "[System]",
        recovery_alerts_enabled: bool = True,
        delivery_timeout_seconds: float = 10.0,
    ) -> None:
        self.store = store
        self.channel = channel
        self.clock = clock or SystemClock()
        self.rate_limiter = CooldownRateLimiter(store, rate_limit_seconds)
        self.dedup = DedupGate(store)
        self.message_prefix = message_prefix
        self.recovery_alerts_enabled = recovery_alerts_enabled
        self.delivery_timeout_seconds = delivery_timeout_seconds

    @classmethod
    def from_settings(
        cls,
        settings: SmartAlertSettings,
        store: StateStore,
        channel: AlertChannel | None = None,
        *,
        clock: Clock | None = None,
    ) -> DeliveryPipeline:
        return cls(
            store,
            channel,
            clock=clock,
            rate_limit_seconds=settings.rate_limit_seconds,
            message_prefix=settings.message_prefix,
            recovery_alerts_enabled=settings.recovery_alerts_enabled,
            delivery_timeout_seconds=settings.delivery_timeout_seconds,
        )

    # ── Public send operations ───────────────────────────────────

    def send_plain(
        self,
        alert_type: str,
        body: str,
        marker: str = PLAIN_MARKER,
        prefix: str | None = None,
        *,
        severity: AlertSeverity = AlertSeverity.WARNING,
    ) -> SendOutcome:
        """Send under the cooldown for ``alert_type``."""
        with self.rate_limiter.locked(alert_type):
            return self._send_rate_limited(alert_type, body, marker, prefix, severity)

    def send_smart(
        self,
        alert_type: str,
        identifier: str,
        body: str,
        marker: str = SMART_MARKER,
        *,
        severity: AlertSeverity = AlertSeverity.WARNING,
    ) -> SendOutcome:
        """Send unless the same body was already delivered for this key."""
        key = _compose(alert_type, identifier)
        with self.dedup.locked(alert_type, identifier):
            if not self.dedup.should_send(alert_type, identifier, body):
                logger.debug("alert_duplicate_suppressed", alert_type=key)
                return SendOutcome(SendStatus.DUPLICATE, key)
            outcome = self.send_plain(key, body, marker, severity=severity)
            if outcome.delivered:
                self.dedup.remember(alert_type, identifier, body)
            return outcome

    def send_critical(self, alert_type: str, identifier: str, body: str) -> SendOutcome:
        """
        Immediate alert for critical event types.

        Bypasses the dedup check but leaves dedup state behind on delivery,
        so the matching recovery has something to recover from.
        """
        key = _compose(alert_type, identifier)
        with self.dedup.locked(alert_type, identifier):
            outcome = self.send_plain(key, body, CRITICAL_MARKER, severity=AlertSeverity.CRITICAL)
            if outcome.delivered:
                self.dedup.remember(alert_type, identifier, body)
            return outcome

    def send_recovery(self, alert_type: str, identifier: str, body: str) -> SendOutcome:
        """Announce recovery if an alert for this key was delivered before."""
        key = _compose(alert_type, identifier) + RECOVERY_SUFFIX
        if not self.recovery_alerts_enabled:
            logger.debug("recovery_alerts_disabled", alert_type=key)
            return SendOutcome(SendStatus.DISABLED, key)
        with self.dedup.locked(alert_type, identifier):
            if not self.dedup.has_state(alert_type, identifier):
                logger.debug("recovery_without_prior_alert", alert_type=key)
                return SendOutcome(SendStatus.NOTHING_TO_RECOVER, key)
            self.dedup.clear(alert_type, identifier)
            return self.send_plain(key, body, RECOVERY_MARKER, RECOVERY_PREFIX, severity=AlertSeverity.INFO)

    def clear_rate_limit(self, alert_type: str) -> bool:
        with self.rate_limiter.locked(alert_type):
            return self.rate_limiter.clear(alert_type)

    # ── Internals ────────────────────────────────────────────────

    def _send_rate_limited(
        self,
        alert_type: str,
        body: str,
        marker: str,
        prefix: str | None,
        severity: AlertSeverity,
    ) -> SendOutcome:
        now = self.clock.now()
        if not self.rate_limiter.allow(alert_type, now):
            logger.info(
                "alert_rate_limited",
                alert_type=alert_type,
                retry_in=self.rate_limiter.remaining(alert_type, now),
            )
            return SendOutcome(SendStatus.RATE_LIMITED, alert_type)

        alert = Alert(
            alert_type=alert_type,
            message=body,
            marker=marker,
            prefix=self.message_prefix if prefix is None else prefix,
            severity=severity,
        )
        text = alert.render()

        if self.channel is None:
            logger.warning("alert_not_delivered_no_channel", alert_type=alert_type, text=text)
            return SendOutcome(SendStatus.NO_CHANNEL, alert_type, text=text)

        if not self.channel.should_send(alert):
            logger.debug("alert_filtered_by_channel", alert_type=alert_type, channel=self.channel.name)
            return SendOutcome(SendStatus.FILTERED, alert_type, text=text)

        result = self._deliver(alert)
        if result.success:
            self.rate_limiter.record(alert_type, now)
            logger.info("alert_delivered", alert_type=alert_type, channel=result.channel_name)
            return SendOutcome(SendStatus.DELIVERED, alert_type, text=text)

        error = _as_delivery_error(result, alert)
        logger.error("alert_delivery_failed", alert_type=alert_type, channel=result.channel_name, error=str(error))
        return SendOutcome(SendStatus.FAILED, alert_type, text=text, error=error)

    def _deliver(self, alert: Alert) -> DeliveryResult:
        channel = self.channel
        try:
            return run_with_timeout(
                channel.send,
                self.delivery_timeout_seconds,
                operation=f"{channel.name} delivery",
                args=(alert,),
            )
        except DeliveryFailureError as e:
            return DeliveryResult.fail(channel.name, e)
        except Exception as e:
            # Channels report failures in the result; a raise is a channel bug
            logger.exception("alert_channel_raised", channel=channel.name)
            return DeliveryResult.fail(channel.name, e)


def _compose(alert_type: str, identifier: str) -> str:
    if not alert_type:
        raise InvalidArgumentError("alert_type must not be empty", field_name="alert_type")
    if not identifier:
        raise InvalidArgumentError("identifier must not be empty", field_name="identifier")
    return f"{alert_type}_{identifier}"


def _as_delivery_error(result: DeliveryResult, alert: Alert) -> DeliveryFailureError:
    if isinstance(result.error, DeliveryFailureError):
        return result.error
    return DeliveryFailureError(
        result.message or "Alert sink reported failure",
        cause=result.error,
    ).with_context(channel=result.channel_name, alert_type=alert.alert_type)
