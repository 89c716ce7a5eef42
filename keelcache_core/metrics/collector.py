"""KeelCache Metrics Collector - Cache Metrics and Monitoring.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from dataclasses import asdict, dataclass
from typing import Any, Callable, Deque, Dict, List

logger = logging.getLogger(__name__)


@dataclass
class CacheMetrics:
    """Point-in-time snapshot of cache metrics.

    Attributes:
        hits: Reads served from the cache
        misses: Reads not served from the cache
        sets: Successful writes into the cache
        deletes: Explicit deletions that removed an entry
        evictions: Entries removed under capacity pressure
        expirations: Entries removed because their TTL elapsed
        loads: Successful loader calls
        load_failures: Loader calls that raised or timed out
        writes: Successful writer calls
        write_failures: Writes given up on (write-through error or
            write-behind retries exhausted)
        write_retries: Write-behind attempts after the first
        entry_count: Current entries
        size_used: Current aggregate size cost
        latency_avg_ms: Average operation latency
        latency_p99_ms: P99 operation latency
        ops_per_second: Operations per second in the rate window
    """

    hits: int = 0
    misses: int = 0
    sets: int = 0
    deletes: int = 0
    evictions: int = 0
    expirations: int = 0
    loads: int = 0
    load_failures: int = 0
    writes: int = 0
    write_failures: int = 0
    write_retries: int = 0
    entry_count: int = 0
    size_used: int = 0
    latency_avg_ms: float = 0.0
    latency_p99_ms: float = 0.0
    ops_per_second: float = 0.0

    @property
    def hit_rate(self) -> float:
        """Calculate hit rate, 0.0 before any read."""
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0

    @property
    def total_ops(self) -> int:
        """Get total operations."""
        return self.hits + self.misses + self.sets + self.deletes

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        data = asdict(self)
        data["hit_rate"] = self.hit_rate
        data["total_ops"] = self.total_ops
        return data


class MetricsCollector:
    """Collects and aggregates cache metrics.

    Purely observational: recording never raises into the caller and
    exporter failures are logged and dropped.

    Example:
        collector = MetricsCollector()
        collector.record_hit()
        with Timer(collector):
            do_work()

        metrics = collector.get_metrics()
        print(f"Hit rate: {metrics.hit_rate:.2%}")
    """

    COUNTERS = (
        "hits",
        "misses",
        "sets",
        "deletes",
        "evictions",
        "expirations",
        "loads",
        "load_failures",
        "writes",
        "write_failures",
        "write_retries",
    )

    def __init__(self, window_seconds: int = 60, max_latency_samples: int = 10000):
        """Initialize collector.

        Args:
            window_seconds: Window for rate calculations
            max_latency_samples: Latency samples kept for percentiles
        """
        self.window_seconds = window_seconds

        self._counters: Dict[str, int] = dict.fromkeys(self.COUNTERS, 0)

        # Gauges
        self._entry_count = 0
        self._size_used = 0

        # Time series for rate calculation
        self._ops_window: Deque[float] = deque()

        # Latency samples
        self._latencies: Deque[float] = deque(maxlen=max_latency_samples)

        self._lock = threading.RLock()

        # Callbacks for metric export
        self._exporters: List[Callable[[CacheMetrics], None]] = []

    def _incr(self, name: str, op: bool = False) -> None:
        with self._lock:
            self._counters[name] += 1
            if op:
                self._record_op()

    def record_hit(self) -> None:
        """Record a cache hit."""
        self._incr("hits", op=True)

    def record_miss(self) -> None:
        """Record a cache miss."""
        self._incr("misses", op=True)

    def record_set(self) -> None:
        """Record a set operation."""
        self._incr("sets", op=True)

    def record_delete(self) -> None:
        """Record a delete operation."""
        self._incr("deletes", op=True)

    def record_eviction(self) -> None:
        """Record an eviction."""
        self._incr("evictions")

    def record_expiration(self) -> None:
        """Record an expiration."""
        self._incr("expirations")

    def record_load(self) -> None:
        """Record a successful loader call."""
        self._incr("loads")

    def record_load_failure(self) -> None:
        """Record a failed loader call."""
        self._incr("load_failures")

    def record_write(self) -> None:
        """Record a successful writer call."""
        self._incr("writes")

    def record_write_failure(self) -> None:
        """Record a write that was given up on."""
        self._incr("write_failures")

    def record_write_retry(self) -> None:
        """Record a write-behind retry attempt."""
        self._incr("write_retries")

    def record_latency(self, ms: float) -> None:
        """Record operation latency.

        Args:
            ms: Latency in milliseconds
        """
        with self._lock:
            self._latencies.append(ms)

    def set_entry_count(self, count: int) -> None:
        self._entry_count = count

    def set_size_used(self, size: int) -> None:
        self._size_used = size

    def _record_op(self) -> None:
        """Record operation for rate calculation."""
        now = time.time()
        self._ops_window.append(now)
        self._trim_window(now)

    def _trim_window(self, now: float) -> None:
        cutoff = now - self.window_seconds
        while self._ops_window and self._ops_window[0] < cutoff:
            self._ops_window.popleft()

    def _calculate_ops_per_second(self) -> float:
        if not self._ops_window:
            return 0.0

        now = time.time()
        self._trim_window(now)
        if not self._ops_window:
            return 0.0

        elapsed = now - self._ops_window[0]
        if elapsed == 0:
            return 0.0
        return len(self._ops_window) / elapsed

    def _calculate_latency_avg(self) -> float:
        if not self._latencies:
            return 0.0
        return sum(self._latencies) / len(self._latencies)

    def _calculate_latency_p99(self) -> float:
        if not self._latencies:
            return 0.0

        sorted_latencies = sorted(self._latencies)
        idx = int(len(sorted_latencies) * 0.99)
        return sorted_latencies[min(idx, len(sorted_latencies) - 1)]

    @property
    def hit_rate(self) -> float:
        """Get current hit rate."""
        with self._lock:
            total = self._counters["hits"] + self._counters["misses"]
            return self._counters["hits"] / total if total > 0 else 0.0

    def get_metrics(self) -> CacheMetrics:
        """Get current metrics.

        Returns:
            CacheMetrics snapshot
        """
        with self._lock:
            return CacheMetrics(
                **self._counters,
                entry_count=self._entry_count,
                size_used=self._size_used,
                latency_avg_ms=self._calculate_latency_avg(),
                latency_p99_ms=self._calculate_latency_p99(),
                ops_per_second=self._calculate_ops_per_second(),
            )

    def reset(self) -> None:
        """Reset counters and samples; gauges are left alone."""
        with self._lock:
            self._counters = dict.fromkeys(self.COUNTERS, 0)
            self._ops_window.clear()
            self._latencies.clear()

    def add_exporter(self, exporter: Callable[[CacheMetrics], None]) -> None:
        """Add metrics exporter.

        Args:
            exporter: Callback to receive metrics
        """
        self._exporters.append(exporter)

    def export(self) -> None:
        """Export metrics to all exporters."""
        metrics = self.get_metrics()
        for exporter in self._exporters:
            try:
                exporter(metrics)
            except Exception as e:
                logger.error(f"Exporter error: {e}")

    def to_prometheus(self, prefix: str = "cache") -> str:
        """Export metrics in Prometheus text format.

        Args:
            prefix: Metric name prefix

        Returns:
            Prometheus-formatted metrics
        """
        metrics = self.get_metrics()
        lines: List[str] = []

        for name in self.COUNTERS:
            lines.extend([
                f"# HELP {prefix}_{name}_total Total {name.replace('_', ' ')}",
                f"# TYPE {prefix}_{name}_total counter",
                f"{prefix}_{name}_total {getattr(metrics, name)}",
            ])

        gauges = [
            ("hit_rate", "Cache hit rate", f"{metrics.hit_rate:.4f}"),
            ("entries", "Current entry count", str(metrics.entry_count)),
            ("size_used", "Current aggregate size cost", str(metrics.size_used)),
            ("latency_avg_ms", "Average latency", f"{metrics.latency_avg_ms:.2f}"),
            ("latency_p99_ms", "P99 latency", f"{metrics.latency_p99_ms:.2f}"),
            ("ops_per_second", "Operations per second", f"{metrics.ops_per_second:.2f}"),
        ]
        for name, help_text, value in gauges:
            lines.extend([
                f"# HELP {prefix}_{name} {help_text}",
                f"# TYPE {prefix}_{name} gauge",
                f"{prefix}_{name} {value}",
            ])

        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"MetricsCollector(hits={self._counters['hits']}, hit_rate={self.hit_rate:.2%})"


class Timer:
    """Context manager for timing operations."""

    def __init__(self, collector: MetricsCollector):
        """Initialize timer.

        Args:
            collector: Metrics collector
        """
        self._collector = collector
        self._start: float = 0.0

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        elapsed_ms = (time.perf_counter() - self._start) * 1000
        self._collector.record_latency(elapsed_ms)


__all__ = ["MetricsCollector", "CacheMetrics", "Timer"]
