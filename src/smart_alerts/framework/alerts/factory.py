"""
Pick the alert sink from settings.

The sink is optional: with neither Telegram credentials nor a webhook URL
configured, ``build_channel`` returns None and the delivery pipeline logs
alerts instead of sending them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from smart_alerts.framework.alerts.channels import ConsoleChannel, TelegramChannel, WebhookChannel
from smart_alerts.framework.alerts.protocol import AlertChannel
from smart_alerts.framework.logging import get_logger

if TYPE_CHECKING:
    from smart_alerts.core.settings import SmartAlertSettings

logger = get_logger(__name__)


def build_channel(settings: SmartAlertSettings, *, console: bool = False) -> AlertChannel | None:
    """
    Build the configured alert sink.

    Priority: console (when requested) > Telegram > webhook > none.
    """
    if console:
        return ConsoleChannel()

    # A half-configured bot is an error, not a reason to fall through
    if settings.telegram_bot_token is not None or settings.telegram_chat_id:
        token = settings.telegram_bot_token
        return TelegramChannel(
            bot_token=token.get_secret_value() if token is not None else None,
            chat_id=settings.telegram_chat_id,
            timeout=settings.delivery_timeout_seconds,
        )

    if settings.webhook_url:
        return WebhookChannel("webhook", settings.webhook_url, timeout=settings.delivery_timeout_seconds)

    logger.debug("no_alert_channel_configured")
    return None
