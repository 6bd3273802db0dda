"""smart-alerts core -- domain-agnostic primitives.

Architecture::

    errors.py      Structured error hierarchy (SmartAlertError and subclasses)
    settings.py    SmartAlertSettings (pydantic-settings) + get_settings() cache
    clock.py       Injectable Clock (SystemClock, FakeClock)
    hashing.py     Content fingerprints for deduplication
    storage.py     StateStore protocol, FileStateStore, MemoryStateStore
"""

from smart_alerts.core.clock import Clock, FakeClock, SystemClock
from smart_alerts.core.errors import (
    ConfigurationError,
    CorruptStateError,
    DeliveryFailureError,
    DeliveryTimeoutError,
    ErrorCategory,
    ErrorContext,
    InvalidArgumentError,
    MissingConfigError,
    SmartAlertError,
    StorageUnavailableError,
)
from smart_alerts.core.hashing import fingerprint
from smart_alerts.core.storage import FileStateStore, MemoryStateStore, StateStore, validate_key

__all__ = [
    # Clock
    "Clock",
    "SystemClock",
    "FakeClock",
    # Errors
    "ErrorCategory",
    "ErrorContext",
    "SmartAlertError",
    "InvalidArgumentError",
    "CorruptStateError",
    "StorageUnavailableError",
    "DeliveryFailureError",
    "DeliveryTimeoutError",
    "ConfigurationError",
    "MissingConfigError",
    # Hashing
    "fingerprint",
    # Storage
    "StateStore",
    "FileStateStore",
    "MemoryStateStore",
    "validate_key",
]
