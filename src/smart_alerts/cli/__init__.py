"""smart-alerts command-line interface."""

from smart_alerts.cli.app import app

__all__ = ["app"]
