"""
Logging context management using contextvars.

Every log line emitted while an event is being processed carries the
event_type / identifier (or alert_type for direct sends) without passing
them through every call. The engine binds them with ``scoped_context`` for
the duration of one operation.

Design choice: contextvars
- Thread-safe: a delivery running in a timeout worker thread does not see
  or clobber the caller's context
- Clean integration with structlog processors
"""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import asdict, dataclass
from typing import Any

import structlog


@dataclass
class LogContext:
    """
    Context attached to all log entries.

    operation: Public operation being run ("register_event", "sweep", ...)
    event_type / identifier: Record key for event-store operations
    alert_type: Rate-limit / dedup key for delivery operations
    """

    operation: str | None = None
    event_type: str | None = None
    identifier: str | None = None
    alert_type: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict."""
        return {k: v for k, v in asdict(self).items() if v is not None}

    def merge(self, **kwargs) -> "LogContext":
        """Create new context with merged values."""
        current = asdict(self)
        current.update({k: v for k, v in kwargs.items() if v is not None and k in current})
        return LogContext(**current)


_log_context: ContextVar[LogContext] = ContextVar("smart_alerts_log_context")  # noqa: B039


def get_context() -> LogContext:
    """Get the current log context."""
    return _log_context.get(LogContext())


def bind_context(**kwargs) -> LogContext:
    """
    Bind additional values to current context.

    This merges with the existing context rather than replacing it.
    """
    updated = get_context().merge(**kwargs)
    _log_context.set(updated)
    return updated


def clear_context() -> None:
    """Clear the current context (reset to empty)."""
    _log_context.set(LogContext())


@contextmanager
def scoped_context(**kwargs) -> Iterator[LogContext]:
    """
    Bind context values for the duration of a block, then restore.

    Usage:
        with scoped_context(operation="sweep"):
            ...
    """
    token = _log_context.set(get_context().merge(**kwargs))
    try:
        yield _log_context.get()
    finally:
        _log_context.reset(token)


def add_context_processor(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """
    Structlog processor that adds the bound context to every log entry.

    Explicit keys on the log call win over context values.
    """
    for key, value in get_context().to_dict().items():
        event_dict.setdefault(key, value)
    return event_dict


def get_logger(name: str | None = None) -> Any:
    """
    Get a structured logger.

    Args:
        name: Logger name (typically __name__)
    """
    return structlog.get_logger(name)
