"""
Centralized settings for smart-alerts.

Manifesto:
    Health-check scripts configure alerting through a dozen environment
    variables that grew up under two different naming schemes. ``SmartAlertSettings``
    validates all of them in one place, accepts both the ``SMART_ALERT_*``
    names and the legacy names (``RATE_LIMIT_SECONDS``,
    ``TELEGRAM_PREFIX``, ``ENABLE_RECOVERY_ALERTS``, ...), and is cached so
    every component sees the same values.

    - **Pydantic validation:** Negative durations fail at load time
    - **Environment-driven:** Reads env vars and an optional ``.env`` file
    - **Legacy-compatible:** Older variable names still work
    - **Secrets stay secret:** The bot token is a ``SecretStr``

Examples:
    >>> settings = SmartAlertSettings(grace_period_seconds=60)
    >>> settings.grace_period_seconds
    60
    >>> "BOTH_WANS_DOWN" in settings.critical_event_types
    True

Tags:
    settings, configuration, pydantic, environment, smart-alerts
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import AliasChoices, Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from smart_alerts.core.errors import ConfigurationError

DEFAULT_CRITICAL_EVENT_TYPES = frozenset(
    {
        "BOTH_WANS_DOWN",
        "SELF_HEALING_FAILED",
        "CRITICAL_SERVICE_DOWN",
    }
)


class SmartAlertSettings(BaseSettings):
    """smart-alerts configuration.

    Fields
    ──────
    enabled                    : Global switch; when off every engine call is a no-op
    grace_period_seconds       : Delay before a pending record is promoted to alerted
    recovery_threshold_seconds : Minimum downtime to emit a recovery notification
    rate_limit_seconds         : Cooldown between sends sharing one rate-limit key
    recovery_alerts_enabled    : Kill-switch for recovery notifications
    critical_event_types       : Event types that bypass the grace period
    state_dir                  : Root of the persisted layout
    message_prefix             : Prefix rendered before every plain alert body
    delivery_timeout_seconds   : Upper bound for one sink call
    telegram_bot_token / telegram_chat_id : Telegram sink credentials
    webhook_url                : Generic webhook sink
    log_level / log_format     : structlog configuration
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # ── Engine ───────────────────────────────────────────────────
    enabled: bool = Field(default=True, validation_alias=AliasChoices("SMART_ALERT_ENABLED"))
    grace_period_seconds: int = Field(
        default=180,
        ge=0,
        validation_alias=AliasChoices("SMART_ALERT_GRACE_PERIOD_SECONDS", "SMART_ALERT_GRACE_PERIOD"),
    )
    recovery_threshold_seconds: int = Field(
        default=300,
        ge=0,
        validation_alias=AliasChoices("SMART_ALERT_RECOVERY_THRESHOLD_SECONDS", "SMART_ALERT_RECOVERY_THRESHOLD"),
    )
    critical_event_types: Annotated[frozenset[str], NoDecode] = Field(
        default=DEFAULT_CRITICAL_EVENT_TYPES,
        validation_alias=AliasChoices("SMART_ALERT_CRITICAL_EVENT_TYPES"),
    )
    state_dir: Path = Field(
        default=Path("/var/lib/smart-alerts"),
        validation_alias=AliasChoices("SMART_ALERT_STATE_DIR", "STATE_DIR"),
    )

    # ── Delivery ─────────────────────────────────────────────────
    rate_limit_seconds: int = Field(
        default=1800,
        ge=0,
        validation_alias=AliasChoices("SMART_ALERT_RATE_LIMIT_SECONDS", "RATE_LIMIT_SECONDS"),
    )
    recovery_alerts_enabled: bool = Field(
        default=True,
        validation_alias=AliasChoices("SMART_ALERT_RECOVERY_ALERTS_ENABLED", "ENABLE_RECOVERY_ALERTS"),
    )
    message_prefix: str = Field(
        default="[System]",
        validation_alias=AliasChoices("SMART_ALERT_MESSAGE_PREFIX", "TELEGRAM_PREFIX"),
    )
    delivery_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        validation_alias=AliasChoices("SMART_ALERT_DELIVERY_TIMEOUT_SECONDS"),
    )

    # ── Sinks ────────────────────────────────────────────────────
    telegram_bot_token: SecretStr | None = Field(
        default=None, validation_alias=AliasChoices("TELEGRAM_BOT_TOKEN")
    )
    telegram_chat_id: str | None = Field(
        default=None, validation_alias=AliasChoices("TELEGRAM_CHAT_ID")
    )
    webhook_url: str | None = Field(
        default=None, validation_alias=AliasChoices("SMART_ALERT_WEBHOOK_URL")
    )

    # ── Observability ────────────────────────────────────────────
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", validation_alias=AliasChoices("SMART_ALERT_LOG_LEVEL")
    )
    log_format: Literal["console", "json"] = Field(
        default="console", validation_alias=AliasChoices("SMART_ALERT_LOG_FORMAT")
    )

    @field_validator("critical_event_types", mode="before")
    @classmethod
    def _split_event_types(cls, value: Any) -> Any:
        """Accept ``A,B,C`` or a JSON list from the environment."""
        if isinstance(value, str):
            text = value.strip()
            if text.startswith("["):
                value = json.loads(text)
            else:
                value = [part for part in (p.strip() for p in text.split(",")) if part]
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value

    @field_validator("log_format", mode="before")
    @classmethod
    def _lower_format(cls, value: Any) -> Any:
        return value.lower() if isinstance(value, str) else value

    # ── Derived ──────────────────────────────────────────────────

    @property
    def events_dir(self) -> Path:
        return self.state_dir / "events"

    @property
    def has_telegram(self) -> bool:
        return bool(self.telegram_bot_token and self.telegram_bot_token.get_secret_value() and self.telegram_chat_id)

    def redacted(self) -> dict[str, Any]:
        """Settings as a plain dict with secrets masked (for ``config show``)."""
        data = self.model_dump(mode="json")
        if self.telegram_bot_token is not None:
            data["telegram_bot_token"] = "********"
        data["critical_event_types"] = sorted(self.critical_event_types)
        return data


# ── Settings factory with caching ────────────────────────────────────────

_settings_cache: dict[str, SmartAlertSettings] = {}


def load_settings(**overrides: Any) -> SmartAlertSettings:
    """Build settings from the environment plus explicit overrides.

    Raises:
        ConfigurationError: If any value fails validation.
    """
    try:
        return SmartAlertSettings(**overrides)
    except ValidationError as exc:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in exc.errors())
        raise ConfigurationError(f"Invalid smart-alerts settings: {fields}", cause=exc) from exc


def get_settings(*, _force_reload: bool = False) -> SmartAlertSettings:
    """Load, validate and cache the process-wide settings."""
    if _force_reload or "default" not in _settings_cache:
        _settings_cache["default"] = load_settings()
    return _settings_cache["default"]


def clear_settings_cache() -> None:
    """Clear the settings cache (primarily for testing)."""
    _settings_cache.clear()
