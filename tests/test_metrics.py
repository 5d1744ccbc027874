"""
Unit tests for the value-safe metrics collector.
"""
import pytest

from input_filter.core.metrics import MetricsCollector, get_metrics_collector


@pytest.fixture
def metrics():
    collector = get_metrics_collector()
    collector.reset()
    yield collector
    collector.reset()


def test_singleton():
    assert MetricsCollector() is get_metrics_collector()


def test_record_filter(metrics):
    metrics.record_filter("INT", latency_ms=1.0)
    metrics.record_filter("INT", latency_ms=3.0, unmatched=True)
    metrics.record_filter("MYSTERY", latency_ms=2.0, used_default=True)

    snapshot = metrics.get_snapshot()

    assert snapshot["total_requests"] == 3
    assert snapshot["success_count"] == 3
    assert snapshot["error_count"] == 0
    assert snapshot["filter_types"] == {"INT": 2, "MYSTERY": 1}
    assert snapshot["default_fallbacks"] == 1
    assert snapshot["unmatched_results"] == 1
    assert snapshot["latency"] == {"sum_ms": 6.0, "count": 3, "avg_ms": 2.0}


def test_record_error(metrics):
    metrics.record_error("BAD_REQUEST")
    metrics.record_error("BAD_REQUEST")
    metrics.record_error()

    snapshot = metrics.get_snapshot()

    assert snapshot["total_requests"] == 3
    assert snapshot["error_count"] == 3
    assert snapshot["error_codes"] == {"BAD_REQUEST": 2}
    assert snapshot["latency"]["avg_ms"] == 0.0


def test_snapshot_is_a_copy(metrics):
    metrics.record_filter("INT", latency_ms=1.0)
    snapshot = metrics.get_snapshot()
    snapshot["filter_types"]["INT"] = 99

    assert metrics.get_snapshot()["filter_types"] == {"INT": 1}


def test_reset(metrics):
    metrics.record_filter("INT", latency_ms=1.0)
    metrics.reset()

    snapshot = metrics.get_snapshot()
    assert snapshot["total_requests"] == 0
    assert snapshot["filter_types"] == {}
