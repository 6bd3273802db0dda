"""Event layer: records, grace period, critical bypass and recovery."""

from smart_alerts.events.critical import CriticalBypass
from smart_alerts.events.engine import SmartAlertEngine
from smart_alerts.events.models import (
    AlertRecord,
    EventStatus,
    RecoveryOutcome,
    RegistrationResult,
    SweepReport,
)
from smart_alerts.events.recovery import RecoveryTracker
from smart_alerts.events.scheduler import GracePeriodScheduler
from smart_alerts.events.store import EventStore

__all__ = [
    "AlertRecord",
    "EventStatus",
    "RegistrationResult",
    "SweepReport",
    "RecoveryOutcome",
    "EventStore",
    "CriticalBypass",
    "GracePeriodScheduler",
    "RecoveryTracker",
    "SmartAlertEngine",
]
