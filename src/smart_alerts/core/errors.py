"""
Structured error types for smart-alerts.

Every failure the package can report is a SmartAlertError subclass carrying
a category, a retry hint, structured context and the chained cause. Callers
can then decide whether to abort one operation, log and continue, or retry
on the next invocation, without string-matching exception messages.

Manifesto:
    - **Typed hierarchy:** One subclass per failure domain
    - **Explicit retry semantics:** Storage and delivery errors are retryable,
      argument and configuration errors never are
    - **Rich context:** event_type / identifier / alert_type travel with the error
    - **Error chaining:** The underlying OSError or URLError is preserved as cause

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────┐
        │                      SmartAlertError                          │
        │          (category, retryable, context, cause)                │
        ├──────────────────────────────────────────────────────────────┤
        │  InvalidArgumentError      StorageUnavailableError            │
        │  (VALIDATION)              (STORAGE, retryable)               │
        │                                 │                             │
        │                            CorruptStateError                  │
        │                                                               │
        │  DeliveryFailureError      ConfigurationError                 │
        │  (NETWORK, retryable)      (CONFIG)                           │
        │       │                         │                             │
        │  DeliveryTimeoutError      MissingConfigError                 │
        └──────────────────────────────────────────────────────────────┘

Propagation:
    - InvalidArgumentError / ConfigurationError: raised to the immediate
      caller, abort only that single operation.
    - StorageUnavailableError: raised by the stores, caught and logged by the
      engine so registration and sweeps degrade instead of crashing.
    - DeliveryFailureError: never raised out of the delivery pipeline; it is
      carried on the failed SendOutcome.

Examples:
    >>> error = StorageUnavailableError("state dir not writable")
    >>> error.retryable
    True
    >>> error.with_context(event_type="wan_down", identifier="primary").context.event_type
    'wan_down'

Tags:
    error-handling, exception-hierarchy, smart-alerts
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Error categories for classification and log routing."""

    VALIDATION = "VALIDATION"  # Empty keys, unsafe identifiers
    STORAGE = "STORAGE"  # State directory missing / unwritable
    NETWORK = "NETWORK"  # Sink unreachable, timeouts, rejections
    CONFIG = "CONFIG"  # Missing credentials, invalid settings
    INTERNAL = "INTERNAL"  # Bugs, unexpected state


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Typed fields cover the keys the engine works with; anything else lands in
    ``metadata``. ``to_dict()`` returns only the fields that are set.
    """

    event_type: str | None = None
    identifier: str | None = None
    alert_type: str | None = None
    path: str | None = None
    channel: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["event_type", "identifier", "alert_type", "path", "channel"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class SmartAlertError(Exception):
    """
    Base exception for all smart-alerts errors.

    Subclasses set ``default_category`` and ``default_retryable``; both can be
    overridden per instance.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> SmartAlertError:
        """
        Add context to this error (fluent API).

        Usage:
            raise StorageUnavailableError("write failed").with_context(
                path="/var/lib/smart-alerts/events/wan_down_primary.json"
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# VALIDATION
# =============================================================================


class InvalidArgumentError(SmartAlertError):
    """
    A caller passed an unusable argument (empty key field, unsafe identifier).

    Never retryable - the same call will fail the same way.
    """

    default_category = ErrorCategory.VALIDATION
    default_retryable = False

    def __init__(self, message: str, *, field_name: str | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.field_name = field_name
        if field_name:
            self.context.metadata["field"] = field_name


# =============================================================================
# STORAGE
# =============================================================================


class StorageUnavailableError(SmartAlertError):
    """State directory missing, unreadable or not writable."""

    default_category = ErrorCategory.STORAGE
    default_retryable = True


class CorruptStateError(StorageUnavailableError):
    """
    A stored value exists but cannot be decoded.

    Readers treat it as absent; reading it again will fail the same way.
    """

    default_retryable = False


# =============================================================================
# DELIVERY
# =============================================================================


class DeliveryFailureError(SmartAlertError):
    """The alert sink rejected the message or could not be reached."""

    default_category = ErrorCategory.NETWORK
    default_retryable = True


class DeliveryTimeoutError(DeliveryFailureError):
    """The alert sink did not answer within the delivery timeout."""

    def __init__(self, timeout: float, message: str | None = None, **kwargs: Any):
        super().__init__(message or f"Alert delivery timed out after {timeout}s", **kwargs)
        self.timeout = timeout


# =============================================================================
# CONFIGURATION
# =============================================================================


class ConfigurationError(SmartAlertError):
    """Invalid settings or missing sink credentials. Never retryable."""

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class MissingConfigError(ConfigurationError):
    """A required setting is not configured."""

    def __init__(self, key: str, message: str | None = None):
        super().__init__(message or f"Missing required configuration: {key}")
        self.key = key
        self.context.metadata["config_key"] = key


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "SmartAlertError",
    "InvalidArgumentError",
    "StorageUnavailableError",
    "CorruptStateError",
    "DeliveryFailureError",
    "DeliveryTimeoutError",
    "ConfigurationError",
    "MissingConfigError",
]
