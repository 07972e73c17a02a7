"""
Collection Orchestrator.

Runs every active source adapter concurrently, normalizes their output,
merges and deduplicates the result, and keeps the Cache Store current.

Failure semantics:
- A failing source contributes zero articles and is recorded; the run goes on.
- A run in which every dispatched source failed raises AllSourcesFailedError.
- A cache store failure during a fresh run raises CollectionRunError.

Usage:
    orchestrator = CollectionOrchestrator(cache, normalizer, monitor, context)

    articles = await orchestrator.collect_all()
    report = await orchestrator.collect_fresh()
    snapshot = await orchestrator.collect_cached_or_fresh()
"""

import asyncio
import contextlib
import time
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Literal, Optional

import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.cache.store import CacheInfo, CacheStore
from src.collectors import AdapterContext, SourceAdapter, create_adapter
from src.collectors.normalization.pipeline import Normalizer
from src.collectors.normalization.schema import Article
from src.collectors.normalization.text import canonical_url
from src.config.platforms import (
    CollectionMethod,
    PlatformConfig,
    PlatformType,
    get_active_platforms,
)
from src.config.settings import Settings, get_settings
from src.core.circuit_breaker import CircuitBreakerRegistry
from src.core.exceptions import (
    AllSourcesFailedError,
    CacheStoreError,
    CircuitBreakerOpenError,
    CollectionRunError,
    CollectorTimeoutError,
    RetryableError,
)
from src.monitoring.collection_monitor import CollectionMonitor
from src.monitoring.metrics import track_collection_run

logger = structlog.get_logger(__name__)

RUN_BUDGET_EXCEEDED = "Run budget exceeded"

AdapterFactory = Callable[[PlatformConfig, AdapterContext], SourceAdapter]


# =============================================================================
# Results
# =============================================================================


@dataclass
class SourceResult:
    """Outcome of one source within a run."""

    platform_id: str
    platform_name: str
    method: str
    success: bool
    item_count: int = 0
    duration_ms: float = 0.0
    error: Optional[str] = None
    skipped: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "platform_id": self.platform_id,
            "platform_name": self.platform_name,
            "method": self.method,
            "success": self.success,
            "item_count": self.item_count,
            "duration_ms": round(self.duration_ms, 1),
            "error": self.error,
            "skipped": self.skipped,
        }


@dataclass
class CollectionReport:
    """Everything a collection run produced."""

    started_at: datetime
    finished_at: datetime
    articles: list[Article] = field(default_factory=list)
    results: list[SourceResult] = field(default_factory=list)
    duplicates_removed: int = 0
    cached_at: Optional[datetime] = None
    cached_count: Optional[int] = None
    previous_update: Optional[datetime] = None
    previous_hours_ago: Optional[float] = None

    @property
    def duration_ms(self) -> float:
        return (self.finished_at - self.started_at).total_seconds() * 1000

    @property
    def succeeded(self) -> list[SourceResult]:
        return [r for r in self.results if r.success]

    @property
    def failed(self) -> list[SourceResult]:
        return [r for r in self.results if not r.success]

    @property
    def all_failed(self) -> bool:
        return bool(self.results) and not self.succeeded

    def by_platform(self) -> dict[str, int]:
        return dict(Counter(a.platform.id for a in self.articles))

    def summary(self) -> dict[str, Any]:
        return {
            "total_articles": len(self.articles),
            "cached_articles": self.cached_count,
            "duplicates_removed": self.duplicates_removed,
            "sources_succeeded": len(self.succeeded),
            "sources_failed": len(self.failed),
            "duration_ms": round(self.duration_ms, 1),
            "started_at": self.started_at.isoformat(),
            "by_platform": self.by_platform(),
            "previous_update": self.previous_update.isoformat() if self.previous_update else None,
            "hours_ago": round(self.previous_hours_ago, 2) if self.previous_hours_ago is not None else None,
            "sources": [r.to_dict() for r in self.results],
        }


@dataclass
class CorpusSnapshot:
    """The corpus as served to readers, with its provenance."""

    articles: list[Article]
    origin: Literal["cache", "fresh", "stale_cache"]
    last_updated: Optional[datetime]
    hours_since_update: Optional[float]
    report: Optional[CollectionReport] = None

    @property
    def is_stale(self) -> bool:
        return self.origin == "stale_cache"


# =============================================================================
# Pure helpers
# =============================================================================


def needs_update(info: CacheInfo, threshold_hours: float) -> bool:
    """Staleness policy: refresh when nothing is cached or the cache is too old."""
    if info.hours_since_update is None:
        return True
    return info.hours_since_update >= threshold_hours


def merge_articles(groups: Iterable[Iterable[Article]]) -> tuple[list[Article], int]:
    """Merge article groups into one corpus.

    Deduplicates by canonical URL keeping the first occurrence, then sorts by
    publish time, newest first. The sort is stable, so articles with equal
    timestamps keep their group order.

    Returns:
        (merged articles, number of duplicates dropped)
    """
    seen: set[str] = set()
    unique: list[Article] = []
    duplicates = 0

    for group in groups:
        for article in group:
            key = canonical_url(article.url)
            if key in seen:
                duplicates += 1
                continue
            seen.add(key)
            unique.append(article)

    unique.sort(key=lambda a: a.published_at, reverse=True)
    return unique, duplicates


# =============================================================================
# Orchestrator
# =============================================================================


class CollectionOrchestrator:
    """
    Runs source adapters and maintains the cached corpus.

    Args:
        cache: Cache Store client
        normalizer: Raw record to Article mapper
        monitor: Collection statistics sink
        adapter_context: Shared services handed to adapters
        breakers: Per-source circuit breakers (optional)
        settings: Application settings (defaults to get_settings())
        platforms: Provider of the active platform table
        adapter_factory: Platform to adapter resolver
    """

    def __init__(
        self,
        cache: CacheStore,
        normalizer: Normalizer,
        monitor: CollectionMonitor,
        adapter_context: AdapterContext,
        breakers: Optional[CircuitBreakerRegistry] = None,
        settings: Optional[Settings] = None,
        platforms: Callable[[], list[PlatformConfig]] = get_active_platforms,
        adapter_factory: AdapterFactory = create_adapter,
    ):
        settings = settings or get_settings()
        self.cache = cache
        self.normalizer = normalizer
        self.monitor = monitor
        self.adapter_context = adapter_context
        self.breakers = breakers
        self._platforms = platforms
        self._adapter_factory = adapter_factory

        self.default_timeout = settings.collection_default_timeout_seconds
        self.default_retries = settings.collection_default_retries
        self.retry_backoff = settings.collection_retry_backoff_seconds
        self.run_budget = settings.collection_run_budget_seconds
        self.stale_hours = settings.cache_stale_hours
        self.max_cached = settings.max_cached_articles
        self._semaphore = asyncio.Semaphore(settings.collection_max_concurrency)
        self._refresh_lock = asyncio.Lock()

        self.last_report: Optional[CollectionReport] = None

    # -------------------------------------------------------------------------
    # Collection
    # -------------------------------------------------------------------------

    async def collect_all(
        self,
        platforms: Optional[list[PlatformConfig]] = None,
        per_source_limit: Optional[int] = None,
    ) -> list[Article]:
        """Collect, merge and sort without touching the cache. Never raises for source failures."""
        report = await self.run_collection(platforms, per_source_limit)
        return report.articles

    async def run_collection(
        self,
        platforms: Optional[list[PlatformConfig]] = None,
        per_source_limit: Optional[int] = None,
    ) -> CollectionReport:
        """Dispatch every active platform and merge the results.

        Args:
            platforms: Platforms to collect (defaults to the active table)
            per_source_limit: Overrides each platform's own item limit
        """
        started_at = datetime.now(timezone.utc)
        targets = [p for p in (platforms if platforms is not None else self._platforms()) if p.is_active]

        logger.info("collection_run_started", sources=len(targets))

        tasks = {
            p.id: asyncio.create_task(self._collect_source(p, per_source_limit, started_at), name=f"collect:{p.id}")
            for p in targets
        }

        pending: set[asyncio.Task] = set()
        if tasks:
            _, pending = await asyncio.wait(tasks.values(), timeout=self.run_budget)
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        results: list[SourceResult] = []
        groups: list[list[Article]] = []

        # Table order, not completion order, decides which duplicate survives
        for platform in targets:
            task = tasks[platform.id]
            if task in pending:
                duration_ms = self.run_budget * 1000
                logger.warning("adapter_budget_exceeded", source_id=platform.id, budget_seconds=self.run_budget)
                self.monitor.record_failure(platform.id, duration_ms, RUN_BUDGET_EXCEEDED)
                results.append(self._result(platform, success=False, duration_ms=duration_ms, error=RUN_BUDGET_EXCEEDED))
                continue
            result, articles = task.result()
            results.append(result)
            groups.append(articles)

        merged, duplicates = merge_articles(groups)
        report = CollectionReport(
            started_at=started_at,
            finished_at=datetime.now(timezone.utc),
            articles=merged,
            results=results,
            duplicates_removed=duplicates,
        )
        self.last_report = report

        logger.info(
            "collection_run_completed",
            articles=len(merged),
            duplicates_removed=duplicates,
            succeeded=len(report.succeeded),
            failed=len(report.failed),
            duration_ms=round(report.duration_ms, 1),
        )
        return report

    async def _collect_source(
        self,
        platform: PlatformConfig,
        per_source_limit: Optional[int],
        run_started_at: datetime,
    ) -> tuple[SourceResult, list[Article]]:
        """Collect one source. Never raises except on cancellation."""
        limit = per_source_limit or platform.limit
        breaker = self.breakers.get(platform.id) if self.breakers else None
        start = time.perf_counter()

        if breaker is not None and not breaker.can_execute():
            error = CircuitBreakerOpenError(platform.id, breaker.time_until_recovery())
            logger.info("adapter_skipped_circuit_open", source_id=platform.id, recovery_time=error.recovery_time)
            self.monitor.record_failure(platform.id, 0.0, error)
            return self._result(platform, success=False, error=str(error), skipped=True), []

        try:
            adapter = self._adapter_factory(platform, self.adapter_context)
            records = await self._run_with_policy(adapter, platform, limit)
            articles = self.normalizer.normalize_batch(records, platform, run_started_at)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.warning(
                "adapter_failed",
                source_id=platform.id,
                error=str(e),
                error_type=type(e).__name__,
                duration_ms=round(duration_ms, 1),
            )
            self.monitor.record_failure(platform.id, duration_ms, e)
            if breaker is not None:
                await breaker.record_failure()
            return self._result(platform, success=False, duration_ms=duration_ms, error=str(e)), []

        duration_ms = (time.perf_counter() - start) * 1000
        self.monitor.record_success(platform.id, duration_ms, len(articles))
        if breaker is not None:
            await breaker.record_success()
        logger.info("adapter_completed", source_id=platform.id, items=len(articles), duration_ms=round(duration_ms, 1))
        return self._result(platform, success=True, item_count=len(articles), duration_ms=duration_ms), articles

    async def _run_with_policy(self, adapter: SourceAdapter, platform: PlatformConfig, limit: int) -> list:
        """Run an adapter under its timeout and retry policy.

        Network adapters share the concurrency semaphore; browser adapters are
        bounded by the browser pool instead.
        """
        timeout = platform.timeout_seconds or self.default_timeout
        attempts = platform.retries or self.default_retries

        async def attempt() -> list:
            gate = contextlib.nullcontext() if adapter.uses_browser else self._semaphore
            async with gate:
                try:
                    return await asyncio.wait_for(adapter.collect(limit), timeout=timeout)
                except asyncio.TimeoutError:
                    raise CollectorTimeoutError(
                        platform.id,
                        f"Timed out after {timeout:.1f}s",
                        {"timeout_seconds": timeout},
                    )

        records: list = []
        async for retry_state in AsyncRetrying(
            retry=retry_if_exception_type(RetryableError),
            stop=stop_after_attempt(attempts),
            wait=wait_exponential(multiplier=self.retry_backoff, max=30),
            reraise=True,
            before_sleep=lambda state: logger.info(
                "adapter_retrying",
                source_id=platform.id,
                attempt=state.attempt_number,
                error=str(state.outcome.exception()),
            ),
        ):
            with retry_state:
                records = await attempt()
        return records

    @staticmethod
    def _result(platform: PlatformConfig, success: bool, **kwargs) -> SourceResult:
        return SourceResult(
            platform_id=platform.id,
            platform_name=platform.display_name,
            method=platform.collection_method.value,
            success=success,
            **kwargs,
        )

    # -------------------------------------------------------------------------
    # Cache-aware operations
    # -------------------------------------------------------------------------

    async def collect_fresh(self) -> CollectionReport:
        """Re-collect every active source and replace the cached corpus.

        The cached record is replaced in a single write once a run has produced
        a usable result, so a broken run or a failed write leaves the previous
        corpus in place.

        Raises:
            AllSourcesFailedError: Every dispatched source failed.
            CollectionRunError: The cache store could not be written.
        """
        with track_collection_run("fresh"):
            previous = await self._cache_info_or_none()
            report = await self.run_collection()
            if report.all_failed:
                raise AllSourcesFailedError({r.platform_id: r.error or "" for r in report.failed})

            report.articles = report.articles[: self.max_cached]
            try:
                report.cached_at = await self.cache.set_cached_articles(report.articles)
            except CacheStoreError as e:
                raise CollectionRunError(f"Cache store unavailable: {e.message}", {"operation": e.operation})

            report.cached_count = len(report.articles)
            if previous is not None:
                report.previous_update = previous.last_updated
                report.previous_hours_ago = previous.hours_since_update
            return report

    async def collect_courses(self) -> CollectionReport:
        """Collect the course platforms and append them to the cached corpus.

        Existing cached entries win URL conflicts. The cache is written only
        when at least one course was collected.

        Raises:
            AllSourcesFailedError: Every course platform failed.
            CollectionRunError: The cache store could not be read or written.
        """
        course_platforms = [
            p
            for p in self._platforms()
            if p.type == PlatformType.EDUCATIONAL and p.collection_method == CollectionMethod.CRAWLER
        ]

        with track_collection_run("courses"):
            report = await self.run_collection(course_platforms)
            if report.all_failed:
                raise AllSourcesFailedError({r.platform_id: r.error or "" for r in report.failed})
            if not report.articles:
                logger.info("course_collection_empty")
                return report

            try:
                previous = await self.cache.get_cache_info()
                existing = await self.cache.get_cached_articles()
                merged, _ = merge_articles([existing, report.articles])
                merged = merged[: self.max_cached]
                report.cached_at = await self.cache.set_cached_articles(merged)
            except CacheStoreError as e:
                raise CollectionRunError(f"Cache store unavailable: {e.message}", {"operation": e.operation})

            report.cached_count = len(merged)
            report.previous_update = previous.last_updated
            report.previous_hours_ago = previous.hours_since_update
            logger.info("courses_appended", courses=len(report.articles), cached=len(merged))
            return report

    async def collect_cached_or_fresh(self) -> CorpusSnapshot:
        """Serve the cache when fresh enough, otherwise collect.

        When a fresh collection fails at run level and an older cache exists,
        the older cache is served and flagged as `stale_cache`. Concurrent
        callers share one refresh: whoever waits on the refresh lock re-reads
        the cache and serves what the first caller wrote.

        Raises:
            CollectionRunError: Collection failed and nothing is cached.
        """
        snapshot, info = await self._fresh_cache_snapshot()
        if snapshot is not None:
            return snapshot

        async with self._refresh_lock:
            snapshot, info = await self._fresh_cache_snapshot()
            if snapshot is not None:
                logger.debug("refresh_shared", last_updated=info.last_updated)
                return snapshot

            try:
                report = await self.collect_fresh()
            except CollectionRunError as e:
                stale = await self._stale_articles(info)
                if not stale:
                    raise
                logger.warning(
                    "serving_stale_cache",
                    error=str(e),
                    hours_since_update=info.hours_since_update,
                    articles=len(stale),
                )
                return CorpusSnapshot(stale, "stale_cache", info.last_updated, info.hours_since_update)

        return CorpusSnapshot(report.articles, "fresh", report.cached_at, 0.0, report)

    async def _fresh_cache_snapshot(self) -> tuple[Optional[CorpusSnapshot], CacheInfo]:
        try:
            info = await self.cache.get_cache_info()
            if not needs_update(info, self.stale_hours):
                cached = await self.cache.get_cached_articles()
                if cached:
                    return CorpusSnapshot(cached, "cache", info.last_updated, info.hours_since_update), info
        except CacheStoreError as e:
            raise CollectionRunError(f"Cache store unavailable: {e.message}", {"operation": e.operation})
        return None, info

    async def _stale_articles(self, info: CacheInfo) -> list[Article]:
        if info.is_empty:
            return []
        try:
            return await self.cache.get_cached_articles()
        except CacheStoreError as e:
            logger.error("stale_cache_unreadable", error=str(e))
            return []

    async def _cache_info_or_none(self) -> Optional[CacheInfo]:
        try:
            return await self.cache.get_cache_info()
        except CacheStoreError as e:
            logger.warning("cache_info_unavailable", error=str(e))
            return None

    # -------------------------------------------------------------------------
    # Stats
    # -------------------------------------------------------------------------

    def get_collection_stats(self) -> dict[str, Any]:
        """Active platform counts by type and method, plus the last run summary."""
        platforms = self._platforms()
        return {
            "total_platforms": len(platforms),
            "by_type": dict(Counter(p.type.value for p in platforms)),
            "by_method": dict(Counter(p.collection_method.value for p in platforms)),
            "last_run": self.last_report.summary() if self.last_report else None,
        }
