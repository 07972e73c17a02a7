"""Rolling per-source collection statistics.

The monitor is an in-process observability sink: adapters' outcomes are
recorded as they finish and summarised on demand for the monitoring API.
Recording never raises and never blocks the caller; an internal failure is
logged and dropped.

Usage:
    monitor = CollectionMonitor(max_errors=1000, retention_hours=24)

    monitor.record_success("toss", duration_ms=812.0, item_count=6)
    monitor.record_failure("naver", duration_ms=30000.0, error=exc)

    stats = monitor.get_statistics()
    per_source = monitor.get_crawler_statistics()
    errors = monitor.get_recent_errors(20)
    trend = monitor.get_performance_trends(hours=12)
"""

import time
from collections import Counter, deque
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Optional

import structlog

from src.monitoring.metrics import COLLECTOR_ITEMS

logger = structlog.get_logger(__name__)

MAX_ERROR_MESSAGE_LENGTH = 300
ERROR_TRIM_RATIO = 0.8


@dataclass
class RunRecord:
    """Outcome of one adapter invocation."""

    source_id: str
    timestamp: float
    duration_ms: float
    item_count: int
    success: bool
    error: Optional[str] = None


@dataclass
class ErrorRecord:
    """Single source failure."""

    source_id: str
    timestamp: float
    error_type: str
    message: str
    duration_ms: float

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["occurred_at"] = datetime.fromtimestamp(self.timestamp, tz=timezone.utc).isoformat()
        return data


@dataclass
class PerformanceStats:
    """Aggregate over a set of run records."""

    total_runs: int = 0
    successful_runs: int = 0
    failed_runs: int = 0
    total_items: int = 0
    average_duration_ms: float = 0.0
    average_items_per_run: float = 0.0
    error_rate: float = 0.0
    top_errors: list[tuple[str, int]] = field(default_factory=list)
    last_success_at: Optional[float] = None
    last_failure_at: Optional[float] = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["top_errors"] = [{"message": m, "count": c} for m, c in self.top_errors]
        return data


@dataclass
class HourlyTrend:
    """Statistics for one hour bucket."""

    hour_start: float
    runs: int
    average_duration_ms: float
    average_items: float
    error_rate: float

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["hour_start"] = datetime.fromtimestamp(self.hour_start, tz=timezone.utc).isoformat()
        return data


def _summarise(
    runs: Iterable[RunRecord],
    errors: Iterable[ErrorRecord],
    top_n: int,
) -> PerformanceStats:
    runs = list(runs)
    if not runs:
        return PerformanceStats()

    successes = [r for r in runs if r.success]
    failures = [r for r in runs if not r.success]
    error_counts = Counter(e.message for e in errors)

    return PerformanceStats(
        total_runs=len(runs),
        successful_runs=len(successes),
        failed_runs=len(failures),
        total_items=sum(r.item_count for r in runs),
        average_duration_ms=round(sum(r.duration_ms for r in runs) / len(runs), 2),
        average_items_per_run=round(sum(r.item_count for r in runs) / len(runs), 2),
        error_rate=round(len(failures) / len(runs), 4),
        top_errors=error_counts.most_common(top_n),
        last_success_at=max((r.timestamp for r in successes), default=None),
        last_failure_at=max((r.timestamp for r in failures), default=None),
    )


class CollectionMonitor:
    """In-memory rolling statistics of source collection outcomes.

    Args:
        max_errors: Error history cap; trimmed to 80% of the cap when exceeded
        retention_hours: Run and error records older than this are pruned
        clock: Time source returning epoch seconds (injectable for tests)
    """

    def __init__(
        self,
        max_errors: int = 1000,
        retention_hours: int = 24,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.max_errors = max_errors
        self.retention_seconds = retention_hours * 3600
        self._clock = clock
        self._runs: deque[RunRecord] = deque()
        self._errors: list[ErrorRecord] = []

    # -------------------------------------------------------------------------
    # Recording
    # -------------------------------------------------------------------------

    def record_success(self, source_id: str, duration_ms: float, item_count: int) -> None:
        """Record a source that produced items (or legitimately none)."""
        try:
            self._runs.append(
                RunRecord(
                    source_id=source_id,
                    timestamp=self._clock(),
                    duration_ms=float(duration_ms),
                    item_count=int(item_count),
                    success=True,
                )
            )
            COLLECTOR_ITEMS.labels(collector=source_id).inc(item_count)
            self._prune()
        except Exception as e:
            logger.warning("collection_monitor_record_failed", source_id=source_id, error=str(e))

    def record_failure(
        self,
        source_id: str,
        duration_ms: float,
        error: BaseException | str,
    ) -> None:
        """Record a failed source."""
        try:
            now = self._clock()
            if isinstance(error, BaseException):
                error_type = type(error).__name__
                message = str(error) or error_type
            else:
                error_type = "Error"
                message = str(error)
            message = message[:MAX_ERROR_MESSAGE_LENGTH]

            self._runs.append(
                RunRecord(
                    source_id=source_id,
                    timestamp=now,
                    duration_ms=float(duration_ms),
                    item_count=0,
                    success=False,
                    error=message,
                )
            )
            self._errors.append(
                ErrorRecord(
                    source_id=source_id,
                    timestamp=now,
                    error_type=error_type,
                    message=message,
                    duration_ms=float(duration_ms),
                )
            )
            if len(self._errors) > self.max_errors:
                keep = int(self.max_errors * ERROR_TRIM_RATIO)
                self._errors = self._errors[-keep:]
            self._prune()
        except Exception as e:
            logger.warning("collection_monitor_record_failed", source_id=source_id, error=str(e))

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_statistics(self) -> PerformanceStats:
        """Aggregate statistics over every source."""
        try:
            return _summarise(self._runs, self._errors, top_n=10)
        except Exception as e:
            logger.warning("collection_monitor_query_failed", query="statistics", error=str(e))
            return PerformanceStats()

    def get_crawler_statistics(self) -> dict[str, PerformanceStats]:
        """Statistics per source id."""
        try:
            runs_by_source: dict[str, list[RunRecord]] = {}
            for run in self._runs:
                runs_by_source.setdefault(run.source_id, []).append(run)

            return {
                source_id: _summarise(
                    runs,
                    (e for e in self._errors if e.source_id == source_id),
                    top_n=5,
                )
                for source_id, runs in runs_by_source.items()
            }
        except Exception as e:
            logger.warning("collection_monitor_query_failed", query="crawler_statistics", error=str(e))
            return {}

    def get_recent_errors(self, n: int = 50) -> list[ErrorRecord]:
        """Most recent failures, newest first."""
        if n <= 0:
            return []
        return list(reversed(self._errors[-n:]))

    def get_performance_trends(self, hours: int = 24) -> list[HourlyTrend]:
        """Hourly buckets for the last `hours` hours, oldest first."""
        try:
            hours = max(1, int(hours))
            now = self._clock()
            trends: list[HourlyTrend] = []

            for i in range(hours - 1, -1, -1):
                bucket_end = now - i * 3600
                bucket_start = bucket_end - 3600
                bucket = [r for r in self._runs if bucket_start <= r.timestamp < bucket_end]
                if bucket:
                    failed = sum(1 for r in bucket if not r.success)
                    trends.append(
                        HourlyTrend(
                            hour_start=bucket_start,
                            runs=len(bucket),
                            average_duration_ms=round(sum(r.duration_ms for r in bucket) / len(bucket), 2),
                            average_items=round(sum(r.item_count for r in bucket) / len(bucket), 2),
                            error_rate=round(failed / len(bucket), 4),
                        )
                    )
                else:
                    trends.append(HourlyTrend(bucket_start, 0, 0.0, 0.0, 0.0))

            return trends
        except Exception as e:
            logger.warning("collection_monitor_query_failed", query="performance_trends", error=str(e))
            return []

    # -------------------------------------------------------------------------
    # Housekeeping
    # -------------------------------------------------------------------------

    def _prune(self) -> None:
        cutoff = self._clock() - self.retention_seconds
        while self._runs and self._runs[0].timestamp < cutoff:
            self._runs.popleft()
        if self._errors and self._errors[0].timestamp < cutoff:
            self._errors = [e for e in self._errors if e.timestamp >= cutoff]

    def cleanup(self) -> None:
        """Drop records outside the retention window."""
        try:
            self._prune()
        except Exception as e:
            logger.warning("collection_monitor_cleanup_failed", error=str(e))

    def reset(self) -> None:
        """Forget all history (useful for testing)."""
        self._runs.clear()
        self._errors.clear()
