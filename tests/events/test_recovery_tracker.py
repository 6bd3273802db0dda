"""Tests for downtime-gated recovery."""

import pytest

from smart_alerts.core.errors import InvalidArgumentError
from smart_alerts.core.storage import MemoryStateStore
from smart_alerts.delivery.pipeline import SendStatus
from smart_alerts.events.recovery import DEFAULT_RECOVERY_MESSAGE, RecoveryTracker
from smart_alerts.events.scheduler import GracePeriodScheduler
from smart_alerts.events.store import EventStore


@pytest.fixture
def events(clock) -> EventStore:
    return EventStore(MemoryStateStore(), clock)


@pytest.fixture
def scheduler(events, pipeline, clock) -> GracePeriodScheduler:
    return GracePeriodScheduler(events, pipeline, grace_period_seconds=180, clock=clock)


@pytest.fixture
def tracker(events, pipeline, clock) -> RecoveryTracker:
    return RecoveryTracker(events, pipeline, recovery_threshold_seconds=300, clock=clock)


def _alerted(events, scheduler, clock, identifier="nginx"):
    events.register_occurrence("service_down", identifier, f"{identifier} down")
    clock.advance(180)
    scheduler.sweep()


class TestRegisterRecovery:
    def test_unknown_record_is_noop(self, tracker, channel):
        outcome = tracker.register_recovery("service_down", "nginx")
        assert outcome.found is False
        assert outcome.notified is False
        assert channel.sent == []

    def test_pending_record_recovers_silently(self, tracker, events, channel, clock):
        events.register_occurrence("service_down", "nginx", "down")
        clock.advance(1000)
        outcome = tracker.register_recovery("service_down", "nginx")
        assert outcome.found is True
        assert outcome.was_alerted is False
        assert outcome.removed is True
        assert outcome.delivery is None
        assert channel.sent == []
        assert events.get("service_down", "nginx") is None

    def test_short_outage_after_alert_is_silent(self, tracker, events, scheduler, channel, clock):
        _alerted(events, scheduler, clock)
        clock.advance(100)  # downtime 280 < 300
        outcome = tracker.register_recovery("service_down", "nginx")
        assert outcome.downtime == 280
        assert outcome.was_alerted is True
        assert outcome.notified is False
        assert len(channel.sent) == 1
        assert events.get("service_down", "nginx") is None

    def test_long_outage_after_alert_notifies(self, tracker, events, scheduler, channel, clock):
        _alerted(events, scheduler, clock)
        clock.advance(120)  # downtime 300 == threshold
        outcome = tracker.register_recovery("service_down", "nginx", "nginx is back")
        assert outcome.notified is True
        assert outcome.delivery.alert_type == "service_down_nginx_recovered"
        assert channel.texts[-1] == "✅ [Recovery] nginx is back (downtime: 300s)"

    def test_default_message(self, tracker, events, scheduler, channel, clock):
        _alerted(events, scheduler, clock)
        clock.advance(1000)
        tracker.register_recovery("service_down", "nginx")
        assert channel.texts[-1] == f"✅ [Recovery] {DEFAULT_RECOVERY_MESSAGE} (downtime: 1180s)"

    def test_recovery_alerts_disabled(self, events, pipeline, scheduler, channel, clock):
        tracker = RecoveryTracker(
            events, pipeline, recovery_threshold_seconds=300, recovery_alerts_enabled=False, clock=clock
        )
        _alerted(events, scheduler, clock)
        clock.advance(1000)
        outcome = tracker.register_recovery("service_down", "nginx")
        assert outcome.delivery is None
        assert outcome.removed is True
        assert len(channel.sent) == 1

    def test_alert_that_was_never_delivered_has_nothing_to_recover(
        self, tracker, events, scheduler, pipeline, channel, disabled_channel, clock
    ):
        pipeline.channel = disabled_channel
        _alerted(events, scheduler, clock)
        pipeline.channel = channel
        clock.advance(1000)
        outcome = tracker.register_recovery("service_down", "nginx")
        assert outcome.delivery.status is SendStatus.NOTHING_TO_RECOVER
        assert channel.sent == []

    def test_failed_recovery_delivery_still_deletes(self, tracker, events, scheduler, channel, clock):
        _alerted(events, scheduler, clock)
        channel.fail_with = RuntimeError("down")
        clock.advance(1000)
        outcome = tracker.register_recovery("service_down", "nginx")
        assert outcome.delivery.status is SendStatus.FAILED
        assert outcome.removed is True
        assert events.get("service_down", "nginx") is None

    def test_empty_key_fields(self, tracker):
        with pytest.raises(InvalidArgumentError):
            tracker.register_recovery("", "nginx")

    def test_outcome_to_dict(self, tracker, events, clock):
        events.register_occurrence("svc", "a", "down")
        clock.advance(10)
        data = tracker.register_recovery("svc", "a").to_dict()
        assert data == {
            "event_type": "svc",
            "identifier": "a",
            "found": True,
            "downtime": 10,
            "was_alerted": False,
            "removed": True,
            "notified": False,
        }
