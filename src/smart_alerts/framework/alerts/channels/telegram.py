"""Telegram Bot API alert channel.

Manifesto:
    The chat is where the on-call human actually looks. The channel posts
    the rendered alert through ``sendMessage`` and treats anything other
    than ``{"ok": true}`` as a failed delivery.

Tags:
    smart-alerts, framework, alerts, telegram, HTTP-POST
"""

from __future__ import annotations

import json
import urllib.error
import urllib.parse
import urllib.request
from typing import Any

from smart_alerts.core.errors import DeliveryFailureError, MissingConfigError
from smart_alerts.framework.alerts.base import BaseChannel
from smart_alerts.framework.alerts.protocol import (
    Alert,
    AlertSeverity,
    ChannelType,
    DeliveryResult,
)

TELEGRAM_API_URL = "https://api.telegram.org"


class TelegramChannel(BaseChannel):
    """
    Telegram bot channel.

    Example:
        >>> channel = TelegramChannel(bot_token="123:abc", chat_id="-100200300")
        >>> channel.send(Alert(alert_type="disk_full", message="Disk at 97%"))
    """

    def __init__(
        self,
        name: str = "telegram",
        *,
        bot_token: str | None,
        chat_id: str | None,
        parse_mode: str = "HTML",
        api_url: str = TELEGRAM_API_URL,
        timeout: float = 10.0,
        min_severity: AlertSeverity = AlertSeverity.INFO,
        **kwargs: Any,
    ):
        if not bot_token:
            raise MissingConfigError("TELEGRAM_BOT_TOKEN")
        if not chat_id:
            raise MissingConfigError("TELEGRAM_CHAT_ID")
        super().__init__(name, ChannelType.TELEGRAM, min_severity=min_severity, **kwargs)
        self._bot_token = bot_token
        self._chat_id = chat_id
        self._parse_mode = parse_mode
        self._api_url = api_url.rstrip("/")
        self._timeout = timeout

    @property
    def chat_id(self) -> str:
        return self._chat_id

    def _endpoint(self) -> str:
        return f"{self._api_url}/bot{self._bot_token}/sendMessage"

    def send(self, alert: Alert) -> DeliveryResult:
        """Post the rendered alert to the configured chat."""
        data = urllib.parse.urlencode(
            {
                "chat_id": self._chat_id,
                "text": alert.render(),
                "parse_mode": self._parse_mode,
            }
        ).encode("utf-8")

        try:
            req = urllib.request.Request(self._endpoint(), data=data)
            with urllib.request.urlopen(req, timeout=self._timeout) as response:
                body = json.loads(response.read().decode("utf-8") or "{}")
        except urllib.error.HTTPError as e:
            # Telegram answers rejected requests with a JSON description
            return DeliveryResult.fail(
                self._name,
                DeliveryFailureError(f"Telegram API returned HTTP {e.code}", cause=e).with_context(
                    channel=self._name, alert_type=alert.alert_type
                ),
            )
        except urllib.error.URLError as e:
            return DeliveryResult.fail(
                self._name,
                DeliveryFailureError(f"Telegram API unreachable: {e.reason}", cause=e).with_context(
                    channel=self._name, alert_type=alert.alert_type
                ),
            )
        except (OSError, ValueError) as e:
            return DeliveryResult.fail(
                self._name,
                DeliveryFailureError(f"Telegram delivery failed: {e}", cause=e).with_context(
                    channel=self._name, alert_type=alert.alert_type
                ),
            )

        if not isinstance(body, dict) or body.get("ok") is not True:
            description = body.get("description") if isinstance(body, dict) else None
            return DeliveryResult.fail(
                self._name,
                DeliveryFailureError(
                    f"Telegram rejected message: {description or 'ok is not true'}"
                ).with_context(channel=self._name, alert_type=alert.alert_type),
            )

        return DeliveryResult.ok(self._name, response=body)
