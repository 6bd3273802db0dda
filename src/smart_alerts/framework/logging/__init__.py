"""
smart-alerts logging - structured, context-aware logging.

This module provides:
- Structured logging with structlog
- Event/alert context propagation via contextvars
- Environment-based configuration

Usage:
    from smart_alerts.framework.logging import configure_logging, get_logger, scoped_context

    configure_logging()
    log = get_logger(__name__)

    with scoped_context(event_type="wan_down", identifier="primary"):
        log.info("event_registered")   # carries event_type / identifier
"""

from smart_alerts.framework.logging.config import configure_logging, is_configured, is_debug_enabled
from smart_alerts.framework.logging.context import (
    LogContext,
    bind_context,
    clear_context,
    get_context,
    get_logger,
    scoped_context,
)

__all__ = [
    # Configuration
    "configure_logging",
    "is_configured",
    "is_debug_enabled",
    # Context
    "get_logger",
    "bind_context",
    "clear_context",
    "get_context",
    "scoped_context",
    "LogContext",
]
