"""
Tests for probe metrics, structured logging and error helpers.
"""

import asyncio
import json
import logging

import pytest

from siteguard.errors import ProbeTimeoutError, truncate_message, with_timeout
from siteguard.utils.probe_metrics import JSONFormatter, ProbeMetrics, get_structured_logger


class TestProbeMetrics:

    def test_lifecycle(self):
        metrics = ProbeMetrics("directory_exposure").start()
        metrics.increment("requests_sent")
        metrics.increment("requests_sent", 2)
        metrics.stop(status="warning", score=5)

        data = metrics.to_dict()
        assert data["probe"] == "directory_exposure"
        assert data["status"] == "warning"
        assert data["score"] == 5
        assert data["counters"] == {"requests_sent": 3}
        assert data["duration_seconds"] >= 0

    def test_duration_before_start(self):
        assert ProbeMetrics("transport").duration_seconds is None


class TestJSONFormatter:

    def test_extra_fields_are_included(self):
        record = logging.LogRecord("siteguard.metrics", logging.INFO, __file__, 1, "Scan complete", None, None)
        record.scan_summary = {"overall_score": 80}
        payload = json.loads(JSONFormatter().format(record))
        assert payload["message"] == "Scan complete"
        assert payload["level"] == "INFO"
        assert payload["scan_summary"] == {"overall_score": 80}

    def test_structured_logger_has_single_handler(self):
        first = get_structured_logger("siteguard.test.structured")
        second = get_structured_logger("siteguard.test.structured")
        assert first is second
        assert len(first.handlers) == 1
        assert isinstance(first.handlers[0].formatter, JSONFormatter)


class TestErrorHelpers:

    @pytest.mark.asyncio
    async def test_with_timeout_raises_probe_timeout(self):
        @with_timeout(0.01)
        async def slow():
            await asyncio.sleep(1)

        with pytest.raises(ProbeTimeoutError, match="timed out"):
            await slow()

    @pytest.mark.asyncio
    async def test_with_timeout_returns_value(self):
        @with_timeout(1)
        async def fast():
            return 42

        assert await fast() == 42

    def test_truncate_message(self):
        assert truncate_message("short") == "short"
        truncated = truncate_message("x" * 600, max_chars=500)
        assert truncated.startswith("x" * 500)
        assert "100 chars omitted" in truncated
