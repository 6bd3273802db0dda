"""Console alert channel for development and testing."""

from __future__ import annotations

from typing import Any, TextIO

from smart_alerts.framework.alerts.base import BaseChannel
from smart_alerts.framework.alerts.protocol import (
    Alert,
    AlertSeverity,
    ChannelType,
    DeliveryResult,
)


class ConsoleChannel(BaseChannel):
    """
    Console output channel for development.

    Prints the rendered alert exactly as the chat sink would show it.
    """

    def __init__(
        self,
        name: str = "console",
        *,
        min_severity: AlertSeverity = AlertSeverity.INFO,
        color: bool = True,
        stream: TextIO | None = None,
        **kwargs: Any,
    ):
        super().__init__(name, ChannelType.CONSOLE, min_severity=min_severity, **kwargs)
        self._color = color
        self._stream = stream

    def send(self, alert: Alert) -> DeliveryResult:
        """Print alert to console."""
        if self._color:
            colors = {
                AlertSeverity.INFO: "\033[32m",  # Green
                AlertSeverity.WARNING: "\033[33m",  # Yellow
                AlertSeverity.ERROR: "\033[31m",  # Red
                AlertSeverity.CRITICAL: "\033[35m",  # Magenta
            }
            reset = "\033[0m"
            color = colors.get(alert.severity, "")
        else:
            color = reset = ""

        print(f"{color}{alert.render()}{reset}", file=self._stream)
        return DeliveryResult.ok(self._name)
