"""
In-memory metrics collector for value-safe observability.
Thread-safe singleton – filtered values are never stored or logged.
"""
import threading
import time
from dataclasses import dataclass, field
from typing import Dict, Optional


@dataclass
class LatencyStats:
    """Aggregated latency statistics (sum/count for average calculation)."""
    sum_ms: float = 0.0
    count: int = 0

    def record(self, ms: float) -> None:
        self.sum_ms += ms
        self.count += 1

    @property
    def avg_ms(self) -> float:
        return self.sum_ms / self.count if self.count > 0 else 0.0


@dataclass
class MetricsData:
    """Container for all aggregated metrics."""
    total_requests: int = 0
    success_count: int = 0
    error_count: int = 0
    error_codes: Dict[str, int] = field(default_factory=dict)
    latency: LatencyStats = field(default_factory=LatencyStats)
    filter_types: Dict[str, int] = field(default_factory=dict)
    default_fallbacks: int = 0
    unmatched_results: int = 0
    started_at: float = field(default_factory=time.time)


class MetricsCollector:
    """
    Thread-safe singleton for collecting value-safe metrics.

    Usage:
        metrics = get_metrics_collector()
        metrics.record_filter("INT", latency_ms=0.4, used_default=False, unmatched=True)
    """
    _instance: "MetricsCollector | None" = None
    _lock = threading.Lock()

    def __new__(cls) -> "MetricsCollector":
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    instance = super().__new__(cls)
                    instance._data = MetricsData()
                    instance._data_lock = threading.Lock()
                    cls._instance = instance
        return cls._instance

    def record_filter(
        self,
        filter_type: str,
        latency_ms: float,
        used_default: bool = False,
        unmatched: bool = False,
    ) -> None:
        """
        Record one successfully filtered value.

        Args:
            filter_type: Normalized type name requested by the caller
            latency_ms: Time spent in the rule
            used_default: No rule was registered and the default rule ran
            unmatched: The rule produced None (soft failure)
        """
        with self._data_lock:
            self._data.total_requests += 1
            self._data.success_count += 1
            self._data.latency.record(latency_ms)
            self._data.filter_types[filter_type] = (
                self._data.filter_types.get(filter_type, 0) + 1
            )
            if used_default:
                self._data.default_fallbacks += 1
            if unmatched:
                self._data.unmatched_results += 1

    def record_error(self, error_code: Optional[str] = None) -> None:
        """Record a request that failed before producing a value."""
        with self._data_lock:
            self._data.total_requests += 1
            self._data.error_count += 1
            if error_code:
                self._data.error_codes[error_code] = (
                    self._data.error_codes.get(error_code, 0) + 1
                )

    def get_snapshot(self) -> dict:
        """
        Get a snapshot of current metrics.
        Returns a plain dict suitable for JSON serialization.
        """
        with self._data_lock:
            uptime_seconds = int(time.time() - self._data.started_at)
            return {
                "uptime_seconds": uptime_seconds,
                "total_requests": self._data.total_requests,
                "success_count": self._data.success_count,
                "error_count": self._data.error_count,
                "error_codes": dict(self._data.error_codes),
                "latency": {
                    "sum_ms": round(self._data.latency.sum_ms, 3),
                    "count": self._data.latency.count,
                    "avg_ms": round(self._data.latency.avg_ms, 3),
                },
                "filter_types": dict(self._data.filter_types),
                "default_fallbacks": self._data.default_fallbacks,
                "unmatched_results": self._data.unmatched_results,
            }

    def reset(self) -> None:
        """Reset all metrics (useful for testing)."""
        with self._data_lock:
            self._data = MetricsData()


def get_metrics_collector() -> MetricsCollector:
    """Get the singleton metrics collector instance."""
    return MetricsCollector()
