"""Tests for critical events skipping the grace period."""

from smart_alerts.delivery.pipeline import SendStatus
from smart_alerts.events.models import EventStatus


class TestCriticalBypass:
    def test_fires_immediately(self, engine, channel):
        result = engine.register_event("BOTH_WANS_DOWN", "site", "Both uplinks lost")
        assert result.created is True
        assert result.critical is True
        assert result.grace_active is False
        assert result.delivery.status is SendStatus.DELIVERED
        assert channel.texts == ["🚨 [System] CRITICAL: Both uplinks lost"]
        assert engine.get_event("BOTH_WANS_DOWN", "site").status is EventStatus.ALERTED

    def test_refresh_is_silent(self, engine, channel, clock):
        engine.register_event("BOTH_WANS_DOWN", "site", "Both uplinks lost")
        clock.advance(60)
        result = engine.register_event("BOTH_WANS_DOWN", "site", "Both uplinks lost")
        assert result.created is False
        assert result.critical is True
        assert result.delivery is None
        assert len(channel.sent) == 1

    def test_sweep_ignores_alerted_critical_record(self, engine, channel, clock):
        engine.register_event("CRITICAL_SERVICE_DOWN", "db", "postgres down")
        clock.advance(1000)
        assert engine.check_pending_alerts().checked == 0
        assert len(channel.sent) == 1

    def test_long_outage_recovery_notifies(self, engine, channel, clock):
        engine.register_event("BOTH_WANS_DOWN", "site", "Both uplinks lost")
        clock.advance(600)
        outcome = engine.register_recovery("BOTH_WANS_DOWN", "site", "Uplinks restored")
        assert outcome.notified is True
        assert channel.texts[-1] == "✅ [Recovery] Uplinks restored (downtime: 600s)"

    def test_failed_critical_delivery_still_alerted(self, settings, failing_channel, clock):
        from smart_alerts.events.engine import SmartAlertEngine

        engine = SmartAlertEngine.from_settings(settings, failing_channel, clock=clock)
        assert engine.init()
        result = engine.register_event("SELF_HEALING_FAILED", "router", "restart loop")
        assert result.delivery.status is SendStatus.FAILED
        assert engine.get_event("SELF_HEALING_FAILED", "router").alert_sent is True

    def test_custom_critical_types(self, state_dir, channel, clock):
        from smart_alerts.core.settings import load_settings
        from smart_alerts.events.engine import SmartAlertEngine

        settings = load_settings(state_dir=state_dir, critical_event_types="disk_full")
        engine = SmartAlertEngine.from_settings(settings, channel, clock=clock)
        assert engine.init()
        assert engine.register_event("disk_full", "sda1", "disk full").critical is True
        assert engine.register_event("BOTH_WANS_DOWN", "site", "down").critical is False
        assert len(channel.sent) == 1
