"""
Unit tests for the Collection Orchestrator.

Tests cover:
- Fan-out, merge, deduplication and ordering
- Per-source timeout, retry policy and run budget
- Circuit breaker skips
- collect_fresh / collect_courses / collect_cached_or_fresh cache semantics
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from src.cache.store import CacheInfo, CacheStore, InMemoryCacheBackend
from src.collectors.base import AdapterContext, SourceAdapter
from src.collectors.normalization.pipeline import Normalizer
from src.collectors.normalization.schema import CourseRawRecord, RssRawRecord
from src.config.platforms import CollectionMethod, PlatformType
from src.core.circuit_breaker import CircuitBreakerRegistry
from src.core.exceptions import (
    AllSourcesFailedError,
    CollectionRunError,
    CollectorNotFoundError,
    CollectorUnavailableError,
)
from src.monitoring.collection_monitor import CollectionMonitor
from src.orchestration.aggregator import (
    RUN_BUDGET_EXCEEDED,
    CollectionOrchestrator,
    merge_articles,
    needs_update,
)

BASE = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


# =============================================================================
# Fakes
# =============================================================================


def rss_records(prefix: str, n: int) -> list[RssRawRecord]:
    return [
        RssRawRecord(
            title=f"{prefix} post {i}",
            link=f"https://{prefix}.example.com/posts/{i}",
            published_at=BASE - timedelta(hours=i),
        )
        for i in range(n)
    ]


def returns(records, delay: float = 0.0):
    async def behavior(limit):
        if delay:
            await asyncio.sleep(delay)
        return records[:limit]

    return behavior


def raises(*errors):
    """Raise the given errors in turn; the last one repeats."""
    remaining = list(errors)

    async def behavior(limit):
        error = remaining.pop(0) if len(remaining) > 1 else remaining[0]
        raise error

    return behavior


def flaky(error, records):
    state = {"failed": False}

    async def behavior(limit):
        if not state["failed"]:
            state["failed"] = True
            raise error
        return records[:limit]

    return behavior


class FakeAdapter(SourceAdapter):
    def __init__(self, platform, context, behavior, calls):
        super().__init__(platform, context)
        self._behavior = behavior
        self._calls = calls

    async def collect(self, limit):
        self._calls[self.source_id] = self._calls.get(self.source_id, 0) + 1
        return await self._behavior(limit)


class FakeAdapterFactory:
    """Resolves platforms to FakeAdapters driven by per-platform behaviors."""

    def __init__(self, behaviors: dict):
        self.behaviors = behaviors
        self.calls: dict[str, int] = {}

    def __call__(self, platform, context):
        return FakeAdapter(platform, context, self.behaviors[platform.id], self.calls)


class WriteFailingBackend(InMemoryCacheBackend):
    async def set(self, key, value):
        raise ConnectionError("write refused")


def build(settings, platforms, behaviors, backend=None, breakers=None):
    factory = FakeAdapterFactory(behaviors)
    orchestrator = CollectionOrchestrator(
        cache=CacheStore(backend or InMemoryCacheBackend()),
        normalizer=Normalizer(),
        monitor=CollectionMonitor(),
        adapter_context=AdapterContext(),
        breakers=breakers,
        settings=settings,
        platforms=lambda: platforms,
        adapter_factory=factory,
    )
    return orchestrator, factory


# =============================================================================
# Pure helpers
# =============================================================================


class TestMergeArticles:
    """Test merge_articles."""

    def test_first_occurrence_wins(self, make_article):
        first = make_article(url="https://example.com/a", platform_id="toss")
        second = make_article(url="https://example.com/a#comments", platform_id="kakao")

        merged, duplicates = merge_articles([[first], [second]])

        assert merged == [first]
        assert duplicates == 1

    def test_sorted_newest_first(self, make_article):
        old = make_article(url="https://example.com/old", days_ago=5)
        new = make_article(url="https://example.com/new", days_ago=1)

        merged, _ = merge_articles([[old], [new]])

        assert [a.url for a in merged] == ["https://example.com/new", "https://example.com/old"]

    def test_equal_timestamps_keep_group_order(self, make_article):
        a = make_article(url="https://example.com/a", days_ago=1)
        b = make_article(url="https://example.com/b", days_ago=1)

        merged, _ = merge_articles([[a], [b]])

        assert merged == [a, b]


class TestNeedsUpdate:
    """Test the staleness policy."""

    def test_empty_cache(self):
        assert needs_update(CacheInfo(None, None), 24)

    @pytest.mark.parametrize("hours,expected", [(0.5, False), (23.9, False), (24.0, True), (30.0, True)])
    def test_threshold(self, hours, expected):
        info = CacheInfo(BASE, hours)
        assert needs_update(info, 24) is expected


# =============================================================================
# Collection runs
# =============================================================================


class TestRunCollection:
    """Test fan-out and per-source failure isolation."""

    @pytest.mark.asyncio
    async def test_failed_and_duplicate_sources_scenario(self, settings, make_platform):
        """5 items + a timed-out source + 3 items sharing one URL gives 7 articles."""
        a, b, c = (
            make_platform(id="a"),
            make_platform(id="b", timeout_seconds=0.05, retries=1),
            make_platform(id="c"),
        )
        c_records = rss_records("c", 2) + [
            RssRawRecord(title="shared", link="https://a.example.com/posts/0", published_at=BASE)
        ]
        orchestrator, _ = build(
            settings,
            [a, b, c],
            {
                "a": returns(rss_records("a", 5), delay=0.02),
                "b": returns(rss_records("b", 5), delay=5),
                "c": returns(c_records),
            },
        )

        report = await orchestrator.run_collection()

        assert len(report.articles) == 7
        assert report.duplicates_removed == 1
        assert [r.success for r in report.results] == [True, False, True]
        assert report.results[1].item_count == 0
        assert "Timed out" in report.results[1].error
        assert not any(x.platform.id == "b" for x in report.articles)

        # Table order decides which duplicate survives, not completion order
        shared = [x for x in report.articles if x.url == "https://a.example.com/posts/0"]
        assert [x.platform.id for x in shared] == ["a"]

        timestamps = [x.published_at for x in report.articles]
        assert timestamps == sorted(timestamps, reverse=True)

    @pytest.mark.asyncio
    async def test_failures_recorded_in_monitor(self, settings, make_platform):
        orchestrator, _ = build(
            settings,
            [make_platform(id="a"), make_platform(id="b")],
            {"a": returns(rss_records("a", 2)), "b": raises(CollectorNotFoundError("b", "feed gone"))},
        )

        await orchestrator.run_collection()

        stats = orchestrator.monitor.get_crawler_statistics()
        assert stats["a"].successful_runs == 1
        assert stats["a"].total_items == 2
        assert stats["b"].failed_runs == 1
        assert orchestrator.monitor.get_recent_errors(1)[0].error_type == "CollectorNotFoundError"

    @pytest.mark.asyncio
    async def test_inactive_platforms_skipped(self, settings, make_platform):
        orchestrator, factory = build(
            settings,
            [make_platform(id="a"), make_platform(id="off", is_active=False)],
            {"a": returns(rss_records("a", 1)), "off": returns(rss_records("off", 1))},
        )

        report = await orchestrator.run_collection()

        assert [r.platform_id for r in report.results] == ["a"]
        assert "off" not in factory.calls

    @pytest.mark.asyncio
    async def test_per_source_limit_override(self, settings, make_platform):
        orchestrator, _ = build(settings, [make_platform(id="a")], {"a": returns(rss_records("a", 5))})

        articles = await orchestrator.collect_all(per_source_limit=2)

        assert len(articles) == 2

    @pytest.mark.asyncio
    async def test_no_platforms(self, settings):
        orchestrator, _ = build(settings, [], {})

        report = await orchestrator.run_collection()

        assert report.articles == []
        assert not report.all_failed

    @pytest.mark.asyncio
    async def test_unsupported_method_is_a_source_failure(self, settings, make_platform):
        orchestrator = CollectionOrchestrator(
            cache=CacheStore(InMemoryCacheBackend()),
            normalizer=Normalizer(),
            monitor=CollectionMonitor(),
            adapter_context=AdapterContext(),
            settings=settings,
            platforms=lambda: [make_platform(id="api-only", method=CollectionMethod.API)],
        )

        report = await orchestrator.run_collection()

        assert report.all_failed
        assert "No adapter" in report.results[0].error

    @pytest.mark.asyncio
    async def test_run_budget_cancels_slow_sources(self, settings, make_platform):
        orchestrator, _ = build(
            settings,
            [make_platform(id="fast"), make_platform(id="slow", timeout_seconds=30)],
            {"fast": returns(rss_records("fast", 2)), "slow": returns(rss_records("slow", 2), delay=5)},
        )
        orchestrator.run_budget = 0.1

        report = await orchestrator.run_collection()

        assert len(report.articles) == 2
        assert report.results[1].error == RUN_BUDGET_EXCEEDED
        assert orchestrator.monitor.get_crawler_statistics()["slow"].failed_runs == 1

    @pytest.mark.asyncio
    async def test_stats(self, settings, make_platform):
        platforms = [
            make_platform(id="a"),
            make_platform(id="inflearn", type=PlatformType.EDUCATIONAL, method=CollectionMethod.CRAWLER),
        ]
        orchestrator, _ = build(settings, platforms, {})

        stats = orchestrator.get_collection_stats()

        assert stats["total_platforms"] == 2
        assert stats["by_type"] == {"corporate": 1, "educational": 1}
        assert stats["by_method"] == {"rss": 1, "crawler": 1}
        assert stats["last_run"] is None


class TestRetryPolicy:
    """Test per-source retries."""

    @pytest.mark.asyncio
    async def test_retryable_error_retried(self, settings, make_platform):
        orchestrator, factory = build(
            settings,
            [make_platform(id="a")],
            {"a": flaky(CollectorUnavailableError("a", "502"), rss_records("a", 3))},
        )

        report = await orchestrator.run_collection()

        assert report.results[0].success
        assert len(report.articles) == 3
        assert factory.calls["a"] == 2

    @pytest.mark.asyncio
    async def test_retries_exhausted(self, settings, make_platform):
        orchestrator, factory = build(
            settings,
            [make_platform(id="a", retries=3)],
            {"a": raises(CollectorUnavailableError("a", "502"))},
        )

        report = await orchestrator.run_collection()

        assert not report.results[0].success
        assert factory.calls["a"] == 3

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [CollectorNotFoundError("a", "gone"), ValueError("parser bug")])
    async def test_non_retryable_errors_fail_fast(self, settings, make_platform, error):
        orchestrator, factory = build(settings, [make_platform(id="a")], {"a": raises(error)})

        report = await orchestrator.run_collection()

        assert not report.results[0].success
        assert factory.calls["a"] == 1


class TestCircuitBreaker:
    """Test breaker integration."""

    @pytest.mark.asyncio
    async def test_open_breaker_skips_source(self, settings, make_platform):
        orchestrator, factory = build(
            settings,
            [make_platform(id="a"), make_platform(id="b")],
            {"a": raises(CollectorNotFoundError("a", "gone")), "b": returns(rss_records("b", 1))},
            breakers=CircuitBreakerRegistry(failure_threshold=1),
        )

        await orchestrator.run_collection()
        report = await orchestrator.run_collection()

        skipped = report.results[0]
        assert skipped.skipped
        assert "Circuit breaker open" in skipped.error
        assert factory.calls["a"] == 1
        assert report.results[1].success


# =============================================================================
# Cache-aware operations
# =============================================================================


class TestCollectFresh:
    """Test collect_fresh."""

    @pytest.mark.asyncio
    async def test_replaces_cache(self, settings, make_platform, make_article):
        backend = InMemoryCacheBackend()
        await CacheStore(backend).set_cached_articles([make_article(url="https://old.example.com/1")])
        orchestrator, _ = build(settings, [make_platform(id="a")], {"a": returns(rss_records("a", 3))}, backend)

        report = await orchestrator.collect_fresh()

        cached = await orchestrator.cache.get_cached_articles()
        assert cached == report.articles
        assert report.cached_count == 3
        assert report.previous_update is not None
        assert report.summary()["cached_articles"] == 3
        assert report.summary()["by_platform"] == {"a": 3}

    @pytest.mark.asyncio
    async def test_caps_cached_corpus(self, settings, make_platform):
        orchestrator, _ = build(settings, [make_platform(id="a")], {"a": returns(rss_records("a", 5))})
        orchestrator.max_cached = 2

        report = await orchestrator.collect_fresh()

        assert len(await orchestrator.cache.get_cached_articles()) == 2
        assert report.cached_count == 2

    @pytest.mark.asyncio
    async def test_all_failed_keeps_previous_cache(self, settings, make_platform, make_article):
        backend = InMemoryCacheBackend()
        old = make_article(url="https://old.example.com/1")
        await CacheStore(backend).set_cached_articles([old])
        orchestrator, _ = build(
            settings,
            [make_platform(id="a"), make_platform(id="b")],
            {"a": raises(CollectorNotFoundError("a", "gone")), "b": raises(CollectorNotFoundError("b", "gone"))},
            backend,
        )

        with pytest.raises(AllSourcesFailedError) as exc_info:
            await orchestrator.collect_fresh()

        assert set(exc_info.value.failures) == {"a", "b"}
        assert await orchestrator.cache.get_cached_articles() == [old]

    @pytest.mark.asyncio
    async def test_cache_write_failure(self, settings, make_platform):
        orchestrator, _ = build(
            settings, [make_platform(id="a")], {"a": returns(rss_records("a", 1))}, WriteFailingBackend()
        )

        with pytest.raises(CollectionRunError):
            await orchestrator.collect_fresh()

    @pytest.mark.asyncio
    async def test_running_twice_is_consistent(self, settings, make_platform):
        orchestrator, _ = build(settings, [make_platform(id="a")], {"a": returns(rss_records("a", 3))})

        await orchestrator.collect_fresh()
        report = await orchestrator.collect_fresh()

        assert await orchestrator.cache.get_cached_articles() == report.articles


class TestCollectCourses:
    """Test collect_courses."""

    @staticmethod
    def _platforms(make_platform):
        return [
            make_platform(id="toss"),
            make_platform(id="inflearn", type=PlatformType.EDUCATIONAL, method=CollectionMethod.CRAWLER),
        ]

    @pytest.mark.asyncio
    async def test_appends_and_existing_wins(self, settings, make_platform, make_article):
        backend = InMemoryCacheBackend()
        existing = make_article(url="https://www.inflearn.com/course/shared", platform_id="toss")
        await CacheStore(backend).set_cached_articles([existing])
        courses = [
            CourseRawRecord(title="겹치는 강의", url="https://www.inflearn.com/course/shared"),
            CourseRawRecord(title="새 강의", url="https://www.inflearn.com/course/new", instructor="김강사"),
        ]
        orchestrator, factory = build(
            settings,
            self._platforms(make_platform),
            {"toss": returns(rss_records("toss", 2)), "inflearn": returns(courses)},
            backend,
        )

        report = await orchestrator.collect_courses()

        cached = await orchestrator.cache.get_cached_articles()
        by_url = {a.url: a for a in cached}
        assert set(by_url) == {"https://www.inflearn.com/course/shared", "https://www.inflearn.com/course/new"}
        assert by_url["https://www.inflearn.com/course/shared"].platform.id == "toss"
        assert by_url["https://www.inflearn.com/course/new"].course_instructor == "김강사"
        assert report.cached_count == 2
        assert "toss" not in factory.calls

    @pytest.mark.asyncio
    async def test_nothing_collected_leaves_cache(self, settings, make_platform, make_article):
        backend = InMemoryCacheBackend()
        existing = make_article()
        await CacheStore(backend).set_cached_articles([existing])
        orchestrator, _ = build(settings, self._platforms(make_platform), {"inflearn": returns([])}, backend)

        report = await orchestrator.collect_courses()

        assert report.articles == []
        assert report.cached_at is None
        assert await orchestrator.cache.get_cached_articles() == [existing]

    @pytest.mark.asyncio
    async def test_all_course_sources_failed(self, settings, make_platform):
        orchestrator, _ = build(
            settings,
            self._platforms(make_platform),
            {"inflearn": raises(CollectorUnavailableError("inflearn", "blocked"))},
        )

        with pytest.raises(AllSourcesFailedError):
            await orchestrator.collect_courses()


class TestCollectCachedOrFresh:
    """Test the cached-vs-fresh read path."""

    @pytest.mark.asyncio
    async def test_fresh_cache_served_without_collecting(self, settings, make_platform, make_article):
        backend = InMemoryCacheBackend()
        await CacheStore(backend).set_cached_articles([make_article()])
        orchestrator, factory = build(settings, [make_platform(id="a")], {"a": returns(rss_records("a", 1))}, backend)

        snapshot = await orchestrator.collect_cached_or_fresh()

        assert snapshot.origin == "cache"
        assert len(snapshot.articles) == 1
        assert snapshot.hours_since_update < 1
        assert factory.calls == {}

    @pytest.mark.asyncio
    async def test_empty_cache_collects(self, settings, make_platform):
        orchestrator, _ = build(settings, [make_platform(id="a")], {"a": returns(rss_records("a", 2))})

        snapshot = await orchestrator.collect_cached_or_fresh()

        assert snapshot.origin == "fresh"
        assert snapshot.hours_since_update == 0.0
        assert snapshot.report is not None
        assert len(snapshot.articles) == 2

    @pytest.mark.asyncio
    async def test_old_cache_refreshed(self, settings, make_platform, make_article):
        backend = InMemoryCacheBackend()
        old_store = CacheStore(backend, clock=lambda: datetime.now(timezone.utc) - timedelta(hours=30))
        await old_store.set_cached_articles([make_article(url="https://old.example.com/1")])
        orchestrator, _ = build(settings, [make_platform(id="a")], {"a": returns(rss_records("a", 2))}, backend)

        snapshot = await orchestrator.collect_cached_or_fresh()

        assert snapshot.origin == "fresh"
        assert {a.platform.id for a in snapshot.articles} == {"a"}

    @pytest.mark.asyncio
    async def test_stale_cache_served_when_collection_fails(self, settings, make_platform, make_article):
        backend = InMemoryCacheBackend()
        old = make_article(url="https://old.example.com/1")
        old_store = CacheStore(backend, clock=lambda: datetime.now(timezone.utc) - timedelta(hours=30))
        await old_store.set_cached_articles([old])
        orchestrator, _ = build(
            settings, [make_platform(id="a")], {"a": raises(CollectorNotFoundError("a", "gone"))}, backend
        )

        snapshot = await orchestrator.collect_cached_or_fresh()

        assert snapshot.origin == "stale_cache"
        assert snapshot.is_stale
        assert snapshot.articles == [old]
        assert snapshot.hours_since_update == pytest.approx(30.0, abs=0.1)

    @pytest.mark.asyncio
    async def test_nothing_cached_and_collection_fails(self, settings, make_platform):
        orchestrator, _ = build(
            settings, [make_platform(id="a")], {"a": raises(CollectorNotFoundError("a", "gone"))}
        )

        with pytest.raises(AllSourcesFailedError):
            await orchestrator.collect_cached_or_fresh()

    @pytest.mark.asyncio
    async def test_unreadable_cache(self, settings, make_platform):
        class ReadFailingBackend(InMemoryCacheBackend):
            async def get(self, key):
                raise ConnectionError("down")

        orchestrator, _ = build(
            settings, [make_platform(id="a")], {"a": returns(rss_records("a", 1))}, ReadFailingBackend()
        )

        with pytest.raises(CollectionRunError):
            await orchestrator.collect_cached_or_fresh()

    @pytest.mark.asyncio
    async def test_failed_write_keeps_stale_cache(self, settings, make_platform, make_article):
        seed = InMemoryCacheBackend()
        old = make_article(url="https://old.example.com/1")
        old_store = CacheStore(seed, clock=lambda: datetime.now(timezone.utc) - timedelta(hours=30))
        await old_store.set_cached_articles([old])
        backend = WriteFailingBackend()
        backend.records.update(seed.records)
        orchestrator, _ = build(settings, [make_platform(id="a")], {"a": returns(rss_records("a", 1))}, backend)

        snapshot = await orchestrator.collect_cached_or_fresh()

        assert snapshot.origin == "stale_cache"
        assert snapshot.articles == [old]
        assert backend.records == seed.records

    @pytest.mark.asyncio
    async def test_concurrent_reads_share_one_collection(self, settings, make_platform):
        orchestrator, factory = build(
            settings, [make_platform(id="a")], {"a": returns(rss_records("a", 2), delay=0.2)}
        )

        snapshots = await asyncio.gather(*(orchestrator.collect_cached_or_fresh() for _ in range(5)))

        assert factory.calls == {"a": 1}
        assert [s.origin for s in snapshots].count("fresh") == 1
        assert all(len(s.articles) == 2 for s in snapshots)
