"""Metrics module - Cache metrics collection."""

from keelcache_core.metrics.collector import (
    MetricsCollector,
    CacheMetrics,
    Timer,
)

__all__ = [
    "MetricsCollector",
    "CacheMetrics",
    "Timer",
]
