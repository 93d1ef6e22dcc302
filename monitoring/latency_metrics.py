"""
Fusion latency and volume metrics.

Tracks, over a rolling window of retrieve() calls:
- P50, P95, P99 fusion latency
- Per-source result counts
"""

from collections import deque
from typing import Dict, Optional

from retrieval.hybrid_retriever import FusionMetrics

_SOURCES = ("lexical", "semantic", "relational")


class LatencyCollector:
    """
    Collect and analyze per-call fusion metrics.

    Maintains rolling windows for percentile calculations.
    """

    def __init__(self, window_size: int = 1000):
        """
        Args:
            window_size: Number of recent calls to keep for percentiles
        """
        self.window_size = window_size
        self.latencies: deque = deque(maxlen=window_size)
        self._source_counts: Dict[str, deque] = {
            source: deque(maxlen=window_size) for source in _SOURCES
        }
        self.total_calls = 0

    def record(self, metrics: FusionMetrics):
        """Record the metrics of one retrieve() call."""
        self.total_calls += 1
        self.latencies.append(metrics.fusion_time_ms)
        self._source_counts["lexical"].append(metrics.lexical_count)
        self._source_counts["semantic"].append(metrics.semantic_count)
        self._source_counts["relational"].append(metrics.relational_count)

    def get_percentiles(self) -> Dict[str, float]:
        """
        Get fusion latency percentiles.

        Returns:
            Dict with p50, p95, p99 values in milliseconds
        """
        values = list(self.latencies)

        if not values:
            return {"p50": 0.0, "p95": 0.0, "p99": 0.0}

        sorted_values = sorted(values)
        n = len(sorted_values)

        return {
            "p50": sorted_values[int(n * 0.50)],
            "p95": sorted_values[min(int(n * 0.95), n - 1)],
            "p99": sorted_values[min(int(n * 0.99), n - 1)],
        }

    def get_summary(self) -> Dict:
        """Percentiles plus mean result counts per source."""
        mean_counts = {}
        for source, counts in self._source_counts.items():
            mean_counts[source] = sum(counts) / len(counts) if counts else 0.0

        return {
            "total_calls": self.total_calls,
            "fusion_time_ms": self.get_percentiles(),
            "mean_result_counts": mean_counts,
        }

    def reset(self):
        """Reset all metrics."""
        self.total_calls = 0
        self.latencies.clear()
        for counts in self._source_counts.values():
            counts.clear()


# Global latency collector
_latency_collector: Optional[LatencyCollector] = None


def get_latency_collector() -> LatencyCollector:
    """Get global latency collector."""
    global _latency_collector
    if _latency_collector is None:
        _latency_collector = LatencyCollector()
    return _latency_collector
