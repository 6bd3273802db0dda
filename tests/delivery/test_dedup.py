"""Tests for content-based deduplication."""

import pytest

from smart_alerts.core.errors import InvalidArgumentError
from smart_alerts.core.hashing import fingerprint
from smart_alerts.delivery.dedup import DedupGate


@pytest.fixture
def gate(memory_store) -> DedupGate:
    return DedupGate(memory_store)


class TestDedupGate:
    def test_first_time_sends(self, gate):
        assert gate.should_send("disk", "sda1", "Disk at 97%") is True
        assert gate.has_state("disk", "sda1") is False

    def test_same_body_suppressed_after_remember(self, gate):
        gate.remember("disk", "sda1", "Disk at 97%")
        assert gate.should_send("disk", "sda1", "Disk at 97%") is False

    def test_changed_body_goes_through(self, gate):
        gate.remember("disk", "sda1", "Disk at 97%")
        assert gate.should_send("disk", "sda1", "Disk at 98%") is True

    def test_identifiers_are_independent(self, gate):
        gate.remember("disk", "sda1", "full")
        assert gate.should_send("disk", "sdb1", "full") is True

    def test_storage_key_and_value(self, gate, memory_store):
        gate.remember("disk", "sda1", "Disk at 97%")
        assert memory_store.read(".smart_disk_sda1") == fingerprint("Disk at 97%")

    def test_clear(self, gate):
        gate.remember("disk", "sda1", "x")
        assert gate.clear("disk", "sda1") is True
        assert gate.has_state("disk", "sda1") is False
        assert gate.should_send("disk", "sda1", "x") is True

    @pytest.mark.parametrize(("alert_type", "identifier"), [("", "x"), ("x", "")])
    def test_empty_key_fields_rejected(self, gate, alert_type, identifier):
        with pytest.raises(InvalidArgumentError):
            gate.should_send(alert_type, identifier, "body")
