"""
Alert sink protocol and data classes.

Defines the interface the delivery pipeline talks to (``AlertChannel``) and
the values that cross it (``Alert`` in, ``DeliveryResult`` out). Concrete
channels live in channels/ and share base.py.

Design Principles:
- Protocol over inheritance: the pipeline only needs ``should_send``/``send``
- A channel never raises for delivery problems; it returns a failed result
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Protocol, runtime_checkable


class AlertSeverity(str, Enum):
    """Alert severity levels."""

    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    def _order(self) -> list[AlertSeverity]:
        return [
            AlertSeverity.INFO,
            AlertSeverity.WARNING,
            AlertSeverity.ERROR,
            AlertSeverity.CRITICAL,
        ]

    def __lt__(self, other: AlertSeverity) -> bool:
        return self._order().index(self) < self._order().index(other)

    def __le__(self, other: AlertSeverity) -> bool:
        return self._order().index(self) <= self._order().index(other)

    def __ge__(self, other: AlertSeverity) -> bool:
        return self._order().index(self) >= self._order().index(other)

    def __gt__(self, other: AlertSeverity) -> bool:
        return self._order().index(self) > self._order().index(other)


class ChannelType(str, Enum):
    """Alert channel types."""

    TELEGRAM = "telegram"
    WEBHOOK = "webhook"
    CONSOLE = "console"  # For development/testing


@dataclass
class Alert:
    """
    One notification, ready to be rendered by a channel.

    ``alert_type`` is the rate-limit key the pipeline composed (for example
    ``service_down_nginx``); ``marker`` and ``prefix`` decorate the rendered
    text the way the operator sees it in chat.
    """

    alert_type: str
    message: str
    marker: str = ""
    prefix: str = ""
    severity: AlertSeverity = AlertSeverity.WARNING

    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=datetime.now)

    def render(self) -> str:
        """Render ``"{marker} {prefix} {message}"``, dropping empty parts."""
        return " ".join(part for part in (self.marker, self.prefix, self.message) if part)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        result = {
            "alert_type": self.alert_type,
            "severity": self.severity.value,
            "message": self.message,
            "text": self.render(),
            "created_at": self.created_at.isoformat(),
        }
        if self.metadata:
            result["metadata"] = self.metadata
        return result


@dataclass
class DeliveryResult:
    """Result of one channel delivery attempt."""

    channel_name: str
    success: bool
    message: str | None = None
    response: dict[str, Any] | None = None
    error: Exception | None = None
    delivered_at: datetime = field(default_factory=datetime.now)

    @classmethod
    def ok(cls, channel_name: str, message: str | None = None, **kwargs: Any) -> DeliveryResult:
        return cls(channel_name=channel_name, success=True, message=message, **kwargs)

    @classmethod
    def fail(cls, channel_name: str, error: Exception) -> DeliveryResult:
        return cls(
            channel_name=channel_name,
            success=False,
            error=error,
            message=str(error),
        )


@runtime_checkable
class AlertChannel(Protocol):
    """
    Protocol for alert sinks.

    Implementations must provide:
    - name: Unique channel identifier
    - channel_type: Type classification
    - send(): Deliver an alert, reporting failure in the result
    """

    @property
    def name(self) -> str:
        """Unique channel name."""
        ...

    @property
    def channel_type(self) -> ChannelType:
        """Channel type."""
        ...

    @property
    def min_severity(self) -> AlertSeverity:
        """Minimum severity to send."""
        ...

    @property
    def enabled(self) -> bool:
        """Whether channel is enabled."""
        ...

    def should_send(self, alert: Alert) -> bool:
        """Check if alert should be sent to this channel."""
        ...

    def send(self, alert: Alert) -> DeliveryResult:
        """Send alert to the channel."""
        ...


__all__ = [
    "AlertSeverity",
    "ChannelType",
    "Alert",
    "DeliveryResult",
    "AlertChannel",
]
