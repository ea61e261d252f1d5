import logging
from unittest import mock

import pytest

from image_transcoder.core.observability import (
    LogContext,
    MetricsCollector,
    PerformanceMetrics,
    StructuredLogger,
)


def test_log_context_copies_are_independent():
    base = LogContext(correlation_id="abc", component="service")
    derived = base.with_operation("decode").with_metadata(name="a.jpg")

    assert derived.correlation_id == "abc"
    assert derived.operation == "decode"
    assert derived.metadata == {"name": "a.jpg"}
    assert base.metadata == {}
    assert base.operation == ""


def test_structured_logger_renders_context():
    inner = mock.Mock(spec=logging.Logger)
    logger = StructuredLogger(inner)
    context = LogContext(correlation_id="abc").with_operation("encode").with_metadata(size=10)

    logger.info("Encoded", context, target="webp")
    logger.warning("Plain")

    inner.info.assert_called_once_with("[encode] [abc] Encoded (size=10, target=webp)")
    inner.warning.assert_called_once_with("Plain")


def _metric(success, duration, **metadata):
    return PerformanceMetrics(
        operation="process_item",
        start_time=100.0,
        end_time=100.0 + duration,
        success=success,
        metadata=metadata,
    )


def test_metrics_summary():
    collector = MetricsCollector()
    collector.record_metric(_metric(True, 0.2, bytes_in=1000, bytes_out=400))
    collector.record_metric(_metric(True, 0.4, bytes_in=500, bytes_out=100))
    collector.record_metric(_metric(False, 0.1, error_type="DecodeError"))
    collector.record_metric(_metric(False, 0.1, error_type="DecodeError"))

    summary = collector.get_summary("process_item")

    assert summary["total_operations"] == 4
    assert summary["successful_operations"] == 2
    assert summary["success_rate"] == 0.5
    assert summary["bytes_in"] == 1500
    assert summary["bytes_out"] == 500
    assert summary["errors_by_type"] == {"DecodeError": 2}
    assert summary["max_duration"] == pytest.approx(0.4)


def test_metrics_summary_empty_and_clear():
    collector = MetricsCollector()
    assert collector.get_summary() == {}

    collector.record_metric(_metric(True, 0.1))
    collector.clear_metrics()

    assert collector.get_metrics() == []


def test_duration_ms():
    assert _metric(True, 0.25).duration_ms == 250.0
