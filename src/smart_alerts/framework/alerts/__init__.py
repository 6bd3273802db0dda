"""
Alerting framework package.

Provides a unified interface for delivering rendered alerts to a sink.
"""

from smart_alerts.framework.alerts.base import BaseChannel
from smart_alerts.framework.alerts.channels import (
    ConsoleChannel,
    TelegramChannel,
    WebhookChannel,
)
from smart_alerts.framework.alerts.factory import build_channel
from smart_alerts.framework.alerts.protocol import (
    Alert,
    AlertChannel,
    AlertSeverity,
    ChannelType,
    DeliveryResult,
)

__all__ = [
    # Enums
    "AlertSeverity",
    "ChannelType",
    # Data classes
    "Alert",
    "DeliveryResult",
    # Protocols
    "AlertChannel",
    # Base class
    "BaseChannel",
    # Implementations
    "ConsoleChannel",
    "TelegramChannel",
    "WebhookChannel",
    # Functions
    "build_channel",
]
