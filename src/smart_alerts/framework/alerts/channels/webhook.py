"""Generic webhook alert channel.

Manifesto:
    Any HTTP endpoint should be a valid alert target. The generic webhook
    channel POSTs the alert as JSON so custom integrations work without
    dedicated channel code.

Tags:
    smart-alerts, framework, alerts, webhook, generic, HTTP-POST
"""

from __future__ import annotations

import json
import urllib.error
import urllib.request
from typing import Any

from smart_alerts.core.errors import DeliveryFailureError
from smart_alerts.framework.alerts.base import BaseChannel
from smart_alerts.framework.alerts.protocol import (
    Alert,
    AlertSeverity,
    ChannelType,
    DeliveryResult,
)


class WebhookChannel(BaseChannel):
    """
    Generic webhook channel.

    POSTs ``alert.to_dict()`` to a URL; any 2xx answer counts as delivered.
    """

    def __init__(
        self,
        name: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        timeout: float = 10.0,
        min_severity: AlertSeverity = AlertSeverity.INFO,
        **kwargs: Any,
    ):
        super().__init__(name, ChannelType.WEBHOOK, min_severity=min_severity, **kwargs)
        self._url = url
        self._headers = headers or {}
        self._timeout = timeout

    @property
    def url(self) -> str:
        return self._url

    def send(self, alert: Alert) -> DeliveryResult:
        """Send alert to webhook."""
        headers = {"Content-Type": "application/json"}
        headers.update(self._headers)

        try:
            req = urllib.request.Request(
                self._url,
                data=json.dumps(alert.to_dict()).encode("utf-8"),
                headers=headers,
            )

            with urllib.request.urlopen(req, timeout=self._timeout) as response:
                return DeliveryResult.ok(
                    self._name,
                    response={"status": response.status},
                )

        except urllib.error.URLError as e:
            return DeliveryResult.fail(
                self._name,
                DeliveryFailureError(str(e), cause=e).with_context(channel=self._name, alert_type=alert.alert_type),
            )
        except OSError as e:
            return DeliveryResult.fail(
                self._name,
                DeliveryFailureError(str(e), cause=e).with_context(channel=self._name, alert_type=alert.alert_type),
            )
