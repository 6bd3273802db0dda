"""
smart-alerts - alert-fatigue suppression for health checks.

Decides *when* a failing check is worth a notification (grace period),
stops the same notification from repeating (content dedup + rate limits),
and only announces recovery when the outage lasted long enough to matter.

Usage:
    from smart_alerts import SmartAlertEngine, get_settings

    engine = SmartAlertEngine.from_settings(get_settings())
    engine.register_event("service_down", "nginx", "Service nginx is not responding")
    engine.check_pending_alerts()   # call periodically (cron, polling loop)
    engine.register_recovery("service_down", "nginx")
"""

__version__ = "0.1.0"

from smart_alerts.core.errors import (
    ConfigurationError,
    CorruptStateError,
    DeliveryFailureError,
    DeliveryTimeoutError,
    InvalidArgumentError,
    SmartAlertError,
    StorageUnavailableError,
)
from smart_alerts.core.settings import SmartAlertSettings, get_settings, load_settings
from smart_alerts.events.engine import SmartAlertEngine

__all__ = [
    "__version__",
    "SmartAlertEngine",
    "SmartAlertSettings",
    "get_settings",
    "load_settings",
    "SmartAlertError",
    "InvalidArgumentError",
    "CorruptStateError",
    "StorageUnavailableError",
    "DeliveryFailureError",
    "DeliveryTimeoutError",
    "ConfigurationError",
]
