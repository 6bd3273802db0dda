"""
Event-layer data model.

``AlertRecord`` is the persisted state of one ongoing condition; the other
classes are the values the engine operations return.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from smart_alerts.core.errors import InvalidArgumentError
from smart_alerts.delivery.pipeline import SendOutcome


class EventStatus(str, Enum):
    PENDING = "pending"
    ALERTED = "alerted"


def require_key_fields(event_type: str, identifier: str) -> None:
    """Both halves of the record key must be non-empty."""
    if not event_type:
        raise InvalidArgumentError("event_type must not be empty", field_name="event_type")
    if not identifier:
        raise InvalidArgumentError("identifier must not be empty", field_name="identifier")


@dataclass
class AlertRecord:
    """
    One ongoing condition, keyed by ``(event_type, identifier)``.

    ``first_seen`` is set once; ``last_seen`` moves on every refresh. The
    record exists only while the condition is believed ongoing.
    """

    event_type: str
    identifier: str
    message: str
    details: str = ""
    first_seen: int = 0
    last_seen: int = 0
    alert_sent: bool = False

    @property
    def status(self) -> EventStatus:
        return EventStatus.ALERTED if self.alert_sent else EventStatus.PENDING

    @property
    def key(self) -> str:
        return f"{self.event_type}_{self.identifier}"

    def age(self, now: int) -> int:
        return now - self.first_seen

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_type": self.event_type,
            "identifier": self.identifier,
            "message": self.message,
            "details": self.details,
            "first_seen": self.first_seen,
            "last_seen": self.last_seen,
            "alert_sent": self.alert_sent,
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AlertRecord:
        """
        Rebuild a record from its JSON form.

        ``status`` is derived from ``alert_sent`` and ignored on input.

        Raises:
            ValueError: Missing key fields or non-integer timestamps
        """
        if not isinstance(data, dict):
            raise ValueError(f"Expected an object, got {type(data).__name__}")
        try:
            event_type = str(data["event_type"])
            identifier = str(data["identifier"])
            first_seen = int(data["first_seen"])
            last_seen = int(data.get("last_seen", first_seen))
        except KeyError as e:
            raise ValueError(f"Missing field {e.args[0]!r}") from e
        except OverflowError as e:
            raise ValueError(f"Timestamp out of range: {e}") from e
        if not event_type or not identifier:
            raise ValueError("Empty event_type or identifier")
        return cls(
            event_type=event_type,
            identifier=identifier,
            message=str(data.get("message", "")),
            details=str(data.get("details", "") or ""),
            first_seen=first_seen,
            last_seen=last_seen,
            alert_sent=bool(data.get("alert_sent", False)),
        )


@dataclass(frozen=True)
class RegistrationResult:
    """Outcome of ``register_event``."""

    event_type: str
    identifier: str
    created: bool
    grace_active: bool
    critical: bool = False
    record: AlertRecord | None = None
    delivery: SendOutcome | None = None

    @property
    def refreshed(self) -> bool:
        return self.record is not None and not self.created

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "event_type": self.event_type,
            "identifier": self.identifier,
            "created": self.created,
            "grace_active": self.grace_active,
            "critical": self.critical,
        }
        if self.record is not None:
            result["record"] = self.record.to_dict()
        if self.delivery is not None:
            result["delivery"] = self.delivery.to_dict()
        return result


@dataclass
class SweepReport:
    """Counters from one grace-period sweep."""

    checked: int = 0
    promoted: int = 0
    waiting: int = 0
    failed_deliveries: int = 0
    errors: int = 0
    promoted_keys: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "checked": self.checked,
            "promoted": self.promoted,
            "waiting": self.waiting,
            "failed_deliveries": self.failed_deliveries,
            "errors": self.errors,
            "promoted_keys": list(self.promoted_keys),
        }


@dataclass(frozen=True)
class RecoveryOutcome:
    """Outcome of ``register_recovery``."""

    event_type: str
    identifier: str
    found: bool
    downtime: int | None = None
    was_alerted: bool = False
    removed: bool = False
    delivery: SendOutcome | None = None

    @property
    def notified(self) -> bool:
        return self.delivery is not None and self.delivery.delivered

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "event_type": self.event_type,
            "identifier": self.identifier,
            "found": self.found,
            "downtime": self.downtime,
            "was_alerted": self.was_alerted,
            "removed": self.removed,
            "notified": self.notified,
        }
        if self.delivery is not None:
            result["delivery"] = self.delivery.to_dict()
        return result
