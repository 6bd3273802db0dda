"""
Shared pytest fixtures and configuration for smart-alerts tests.

This module provides:
- Environment isolation (no SMART_ALERT_* / TELEGRAM_* leakage from the host)
- A FakeClock pinned to a fixed instant
- A recording alert channel standing in for Telegram
- File-backed engines rooted in tmp_path

Usage:
    def test_something(engine, clock, channel):
        engine.register_event("wan_down", "primary", "Primary WAN is down")
        clock.advance(180)
        engine.check_pending_alerts()
        assert len(channel.sent) == 1
"""

import sys
import time
from pathlib import Path

import pytest

# Ensure smart_alerts package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from smart_alerts.core.clock import FakeClock
from smart_alerts.core.errors import DeliveryFailureError
from smart_alerts.core.settings import clear_settings_cache, load_settings
from smart_alerts.core.storage import FileStateStore, MemoryStateStore
from smart_alerts.delivery.pipeline import DeliveryPipeline
from smart_alerts.events.engine import SmartAlertEngine
from smart_alerts.framework.alerts import Alert, BaseChannel, ChannelType, DeliveryResult
from smart_alerts.framework.logging import configure_logging

# 2026-01-01T00:00:00Z
T0 = 1_767_225_600

_ENV_PREFIXES = ("SMART_ALERT_", "TELEGRAM_")
_LEGACY_ENV = ("STATE_DIR", "RATE_LIMIT_SECONDS", "ENABLE_RECOVERY_ALERTS")


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """Strip host configuration and run from an empty directory (no .env)."""
    import os

    for name in list(os.environ):
        if name.startswith(_ENV_PREFIXES) or name in _LEGACY_ENV:
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    clear_settings_cache()
    configure_logging(level="DEBUG", format="console", force=True)
    yield
    clear_settings_cache()


# =============================================================================
# Fakes
# =============================================================================


class RecordingChannel(BaseChannel):
    """Alert channel that remembers what it was asked to send."""

    def __init__(self, name: str = "recording", **kwargs):
        super().__init__(name, ChannelType.CONSOLE, **kwargs)
        self.sent: list[Alert] = []
        self.fail_with: Exception | None = None
        self.raise_with: Exception | None = None
        self.delay: float = 0.0

    @property
    def texts(self) -> list[str]:
        return [alert.render() for alert in self.sent]

    def send(self, alert: Alert) -> DeliveryResult:
        if self.delay:
            time.sleep(self.delay)
        if self.raise_with is not None:
            raise self.raise_with
        if self.fail_with is not None:
            return DeliveryResult.fail(self.name, self.fail_with)
        self.sent.append(alert)
        return DeliveryResult.ok(self.name)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(start=T0)


@pytest.fixture
def channel() -> RecordingChannel:
    return RecordingChannel()


@pytest.fixture
def failing_channel() -> RecordingChannel:
    ch = RecordingChannel("failing")
    ch.fail_with = DeliveryFailureError("sink rejected message")
    return ch


@pytest.fixture
def disabled_channel() -> RecordingChannel:
    return RecordingChannel("disabled", enabled=False)


# =============================================================================
# State / settings / engine
# =============================================================================


@pytest.fixture
def state_dir(tmp_path: Path) -> Path:
    return tmp_path / "state"


@pytest.fixture
def settings(state_dir: Path):
    return load_settings(
        state_dir=state_dir,
        grace_period_seconds=180,
        recovery_threshold_seconds=300,
        rate_limit_seconds=1800,
        message_prefix="[System]",
        delivery_timeout_seconds=2.0,
    )


@pytest.fixture
def memory_store() -> MemoryStateStore:
    return MemoryStateStore()


@pytest.fixture
def pipeline(memory_store, channel, clock) -> DeliveryPipeline:
    return DeliveryPipeline(
        memory_store,
        channel,
        clock=clock,
        rate_limit_seconds=1800,
        message_prefix="[System]",
        delivery_timeout_seconds=2.0,
    )


@pytest.fixture
def engine(settings, channel, clock) -> SmartAlertEngine:
    eng = SmartAlertEngine.from_settings(settings, channel, clock=clock)
    assert eng.init()
    return eng


@pytest.fixture
def file_store(state_dir: Path) -> FileStateStore:
    store = FileStateStore(state_dir)
    store.ensure()
    return store


@pytest.fixture
def t0() -> int:
    """Start time of the ``clock`` fixture."""
    return T0
