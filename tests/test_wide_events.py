"""
Tests for wide events (canonical log lines) utility.

Tests the structured logging patterns including:
- WideEvent creation and context management
- Timer and performance breakdown
- Tail sampling logic
- track_operation success and failure handling
"""

import time
from unittest.mock import patch

import pytest
from utils.wide_events import SERVICE_NAME, WideEvent, track_operation


class TestWideEvent:
    """Tests for WideEvent class."""

    def test_creates_event_with_defaults(self):
        event = WideEvent(operation="history_list")

        assert event.context["operation"] == "history_list"
        assert event.context["service"] == SERVICE_NAME
        assert "timestamp" in event.context
        assert "start_time" in event.context
        assert "request_id" in event.context

    def test_creates_event_with_trace_id(self):
        event = WideEvent(operation="test_op", trace_id="abc123")

        assert event.context["trace_id"] == "abc123"

    def test_add_context(self):
        event = WideEvent(operation="test")
        event.add_context(user_id=7, vehicle_ids=[1, 2])

        assert event.context["user_id"] == 7
        assert event.context["vehicle_ids"] == [1, 2]

    def test_business_metrics(self):
        event = WideEvent(operation="test")
        event.add_business_metric("items_returned", 50).add_business_metric("total", 120)

        assert event.context["business_metrics"] == {"items_returned": 50, "total": 120}

    def test_add_error(self):
        event = WideEvent(operation="test")
        event.add_error(ValueError("bad"), field="limit")

        assert event.context["success"] is False
        assert event.context["error"] == {"type": "ValueError", "message": "bad", "details": {"field": "limit"}}

    def test_timer_records_breakdown(self):
        event = WideEvent(operation="test")

        with event.timer("count_query"):
            time.sleep(0.01)

        assert event.context["performance_breakdown"]["count_query_ms"] >= 5

    def test_set_duration_replaces_start_time(self):
        event = WideEvent(operation="test")

        event.set_duration()

        assert "start_time" not in event.context
        assert event.context["duration_ms"] >= 0


class TestSampling:
    def test_errors_always_emitted(self):
        event = WideEvent(operation="test")
        event.mark_failure("boom")

        assert event.should_emit(sample_rate=0.0) is True

    def test_slow_requests_always_emitted(self):
        event = WideEvent(operation="test")
        event.mark_success()
        event.context["duration_ms"] = 5000

        assert event.should_emit(sample_rate=0.0) is True

    def test_fast_success_follows_sample_rate(self):
        event = WideEvent(operation="test")
        event.mark_success()

        assert event.should_emit(sample_rate=0.0) is False
        assert event.should_emit(sample_rate=1.0) is True

    def test_emit_respects_sampling(self):
        event = WideEvent(operation="test")
        event.mark_success()

        with patch.object(event, "should_emit", return_value=False):
            assert event.emit() is False

    def test_forced_emit(self):
        event = WideEvent(operation="test")
        event.mark_success()

        with patch.object(event, "should_emit", return_value=False), patch.object(event, "logger") as logger:
            assert event.emit(force=True) is True

        logger.info.assert_called_once()
        assert logger.info.call_args[0][0] == "test_complete"


class TestTrackOperation:
    def test_success(self):
        with patch.object(WideEvent, "emit") as emit:
            with track_operation("history_statistics", user_id=3) as event:
                event.add_business_metric("days", 90)

        assert event.context["success"] is True
        assert event.context["user_id"] == 3
        emit.assert_called_once_with(level="info", force=False)

    def test_failure_is_reraised_and_forced(self):
        with patch.object(WideEvent, "emit") as emit:
            with pytest.raises(RuntimeError, match="store down"):
                with track_operation("vehicle_comparison") as event:
                    raise RuntimeError("store down")

        assert event.context["success"] is False
        assert event.context["failure_reason"] == "store down"
        assert event.context["error"]["type"] == "RuntimeError"
        emit.assert_called_once_with(level="error", force=True)
