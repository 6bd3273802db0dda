"""Tests for bounded sink calls."""

import time

import pytest

from smart_alerts.core.errors import DeliveryTimeoutError
from smart_alerts.delivery.timeout import run_with_timeout


class TestRunWithTimeout:
    def test_returns_result(self):
        assert run_with_timeout(lambda a, b: a + b, 1.0, args=(1, 2)) == 3

    def test_kwargs(self):
        assert run_with_timeout(lambda *, x: x * 2, 1.0, kwargs={"x": 4}) == 8

    def test_propagates_exceptions(self):
        def boom():
            raise RuntimeError("nope")

        with pytest.raises(RuntimeError, match="nope"):
            run_with_timeout(boom, 1.0)

    def test_timeout_raises_without_waiting_for_worker(self):
        start = time.monotonic()
        with pytest.raises(DeliveryTimeoutError) as exc_info:
            run_with_timeout(time.sleep, 0.1, operation="slow sink", args=(1.0,))
        assert time.monotonic() - start < 0.9
        assert exc_info.value.timeout == 0.1
        assert "slow sink" in exc_info.value.message

    def test_rejects_non_positive_timeout(self):
        with pytest.raises(ValueError):
            run_with_timeout(lambda: None, 0)
