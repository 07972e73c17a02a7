"""
Monitoring and observability for HoneyBee.

Provides Prometheus metrics for process health and the CollectionMonitor,
a rolling in-memory record of per-source collection outcomes.

Usage:
    from src.monitoring import CollectionMonitor, track_collector_operation

    with track_collector_operation("toss", "rss_fetch"):
        body = await client.fetch("toss", url)

    monitor = CollectionMonitor()
    monitor.record_success("toss", duration_ms=640.0, item_count=6)
    stats = monitor.get_statistics()
"""

from src.monitoring.collection_monitor import (
    CollectionMonitor,
    ErrorRecord,
    HourlyTrend,
    PerformanceStats,
)
from src.monitoring.metrics import (
    CACHE_AGE_HOURS,
    CIRCUIT_BREAKER_STATE,
    COLLECTION_RUNS,
    COLLECTOR_OPERATIONS,
    get_metrics_app,
    record_circuit_breaker_failure,
    track_collection_run,
    track_collector_operation,
    update_browser_pool_gauges,
    update_circuit_breaker_state,
)

__all__ = [
    # Collection monitor
    "CollectionMonitor",
    "ErrorRecord",
    "HourlyTrend",
    "PerformanceStats",
    # Prometheus metrics
    "CACHE_AGE_HOURS",
    "CIRCUIT_BREAKER_STATE",
    "COLLECTION_RUNS",
    "COLLECTOR_OPERATIONS",
    # Context managers
    "track_collection_run",
    "track_collector_operation",
    # Helper functions
    "update_browser_pool_gauges",
    "update_circuit_breaker_state",
    "record_circuit_breaker_failure",
    "get_metrics_app",
]
