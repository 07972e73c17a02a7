"""
Prometheus metrics for HoneyBee observability.

Usage:
    from src.monitoring.metrics import track_collector_operation

    with track_collector_operation("toss", "rss_fetch"):
        entries = await client.fetch(feed_url)

    # Or manually
    COLLECTION_RUNS.labels(kind="fresh", outcome="success").inc()
"""

import time
from contextlib import contextmanager
from typing import Generator

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)
from starlette.applications import Starlette
from starlette.responses import Response
from starlette.routing import Route


# =============================================================================
# Metric Definitions
# =============================================================================

# Collector metrics
COLLECTOR_OPERATIONS = Counter(
    "honeybee_collector_operations_total",
    "Total collector operations",
    ["collector", "operation", "status"],
)

COLLECTOR_LATENCY = Histogram(
    "honeybee_collector_latency_seconds",
    "Latency of collector operations",
    ["collector", "operation"],
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0],
)

COLLECTOR_ITEMS = Counter(
    "honeybee_collector_items_total",
    "Articles produced per source",
    ["collector"],
)

# Collection run metrics
COLLECTION_RUNS = Counter(
    "honeybee_collection_runs_total",
    "Collection runs by kind and outcome",
    ["kind", "outcome"],
)

COLLECTION_RUN_DURATION = Histogram(
    "honeybee_collection_run_duration_seconds",
    "Wall-clock duration of collection runs",
    ["kind"],
    buckets=[1.0, 5.0, 15.0, 30.0, 60.0, 120.0, 300.0, 600.0],
)

CACHE_AGE_HOURS = Gauge(
    "honeybee_cache_age_hours",
    "Hours since the cached corpus was last written",
)

# Browser pool metrics
BROWSER_POOL_BROWSERS = Gauge(
    "honeybee_browser_pool_browsers",
    "Live browser instances in the pool",
)

BROWSER_POOL_ACTIVE_PAGES = Gauge(
    "honeybee_browser_pool_active_pages",
    "Pages currently checked out of the pool",
)

# Circuit breaker metrics
CIRCUIT_BREAKER_STATE = Gauge(
    "honeybee_circuit_breaker_state",
    "Circuit breaker state (0=closed, 1=half_open, 2=open)",
    ["service"],
)

CIRCUIT_BREAKER_FAILURES = Counter(
    "honeybee_circuit_breaker_failures_total",
    "Total failures recorded by circuit breakers",
    ["service"],
)


# =============================================================================
# Tracking Context Managers
# =============================================================================


@contextmanager
def track_collector_operation(
    collector: str,
    operation: str,
) -> Generator[None, None, None]:
    """
    Context manager to track collector operations.

    Usage:
        with track_collector_operation("naver", "page_extract"):
            records = extract_cards(html, profile, limit)
    """
    start_time = time.perf_counter()
    status = "success"
    try:
        yield
    except Exception:
        status = "error"
        raise
    finally:
        duration = time.perf_counter() - start_time
        COLLECTOR_OPERATIONS.labels(
            collector=collector,
            operation=operation,
            status=status,
        ).inc()
        COLLECTOR_LATENCY.labels(
            collector=collector,
            operation=operation,
        ).observe(duration)


@contextmanager
def track_collection_run(kind: str) -> Generator[None, None, None]:
    """Track duration and outcome of a whole collection run."""
    start_time = time.perf_counter()
    outcome = "success"
    try:
        yield
    except Exception:
        outcome = "error"
        raise
    finally:
        COLLECTION_RUN_DURATION.labels(kind=kind).observe(time.perf_counter() - start_time)
        COLLECTION_RUNS.labels(kind=kind, outcome=outcome).inc()


def update_browser_pool_gauges(browsers: int, active_pages: int) -> None:
    """Publish the pool's current size."""
    BROWSER_POOL_BROWSERS.set(browsers)
    BROWSER_POOL_ACTIVE_PAGES.set(active_pages)


def update_circuit_breaker_state(service: str, state: str) -> None:
    """
    Update circuit breaker state gauge.

    Args:
        service: Service name
        state: Circuit state ("closed", "half_open", "open")
    """
    state_map = {"closed": 0, "half_open": 1, "open": 2}
    CIRCUIT_BREAKER_STATE.labels(service=service).set(state_map.get(state, 0))


def record_circuit_breaker_failure(service: str) -> None:
    """Record a circuit breaker failure."""
    CIRCUIT_BREAKER_FAILURES.labels(service=service).inc()


# =============================================================================
# Metrics Endpoint
# =============================================================================


async def metrics_endpoint(request) -> Response:
    """Prometheus metrics endpoint handler."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )


def get_metrics_app() -> Starlette:
    """
    Get a Starlette app for serving metrics.

    Mount this at /metrics in your main app:
        from src.monitoring.metrics import get_metrics_app
        app.mount("/metrics", get_metrics_app())
    """
    return Starlette(
        routes=[
            Route("/", metrics_endpoint),
        ]
    )
