"""Alert channel implementations."""

from smart_alerts.framework.alerts.channels.console import ConsoleChannel
from smart_alerts.framework.alerts.channels.telegram import TelegramChannel
from smart_alerts.framework.alerts.channels.webhook import WebhookChannel

__all__ = [
    "ConsoleChannel",
    "TelegramChannel",
    "WebhookChannel",
]
