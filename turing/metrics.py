"""
turing/metrics.py
In-process request/learning/cache counters for the metrics endpoint.
Exports: MetricsCollector
"""

import time
from typing import Any


class MetricsCollector:
    """Accumulates counters since process start."""

    def __init__(self) -> None:
        self.request_count = 0
        self.error_count = 0
        self.total_response_time_ms = 0.0
        self.learning_count = 0
        self.cache_hits = 0
        self.cache_misses = 0
        self.start_time = time.time()

    def record_request(self, duration_ms: float, has_error: bool = False) -> None:
        self.request_count += 1
        self.total_response_time_ms += duration_ms
        if has_error:
            self.error_count += 1

    def record_learning(self) -> None:
        self.learning_count += 1

    def record_cache_hit(self) -> None:
        self.cache_hits += 1

    def record_cache_miss(self) -> None:
        self.cache_misses += 1

    def snapshot(self) -> dict[str, Any]:
        """Return counters plus derived averages."""
        avg_response_time = (
            self.total_response_time_ms / self.request_count if self.request_count else 0
        )
        error_rate = (self.error_count / self.request_count) * 100 if self.request_count else 0
        return {
            "requestCount": self.request_count,
            "errorCount": self.error_count,
            "learningCount": self.learning_count,
            "cacheHits": self.cache_hits,
            "cacheMisses": self.cache_misses,
            "avgResponseTime": round(avg_response_time),
            "uptime": round((time.time() - self.start_time) * 1000),
            "errorRate": error_rate,
        }
