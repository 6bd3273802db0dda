"""
Alert channel base class.

Provides common functionality for alert channel implementations:
- Severity filtering
- Enable/disable
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from smart_alerts.framework.alerts.protocol import (
    Alert,
    AlertSeverity,
    ChannelType,
    DeliveryResult,
)


class BaseChannel(ABC):
    """Base class for alert channel implementations."""

    def __init__(
        self,
        name: str,
        channel_type: ChannelType,
        *,
        min_severity: AlertSeverity = AlertSeverity.INFO,
        enabled: bool = True,
    ):
        self._name = name
        self._channel_type = channel_type
        self._min_severity = min_severity
        self._enabled = enabled

    @property
    def name(self) -> str:
        return self._name

    @property
    def channel_type(self) -> ChannelType:
        return self._channel_type

    @property
    def min_severity(self) -> AlertSeverity:
        return self._min_severity

    @property
    def enabled(self) -> bool:
        return self._enabled

    def should_send(self, alert: Alert) -> bool:
        """Check if alert should be sent."""
        if not self._enabled:
            return False
        return alert.severity >= self._min_severity

    @abstractmethod
    def send(self, alert: Alert) -> DeliveryResult:
        """Send alert to the channel."""
        ...
