"""
Unit tests for the RSS feed client and adapter.

Tests cover:
- HTTP status mapping onto collector exceptions
- Feed parsing, limits and date handling
- Spam filtering for open tag feeds
"""

import threading
from datetime import datetime, timezone

import feedparser
import httpx
import pytest

from src.collectors.base import AdapterContext
from src.collectors.rss.adapter import RssAdapter, is_spam_entry, parse_entry_date
from src.collectors.rss.client import FeedClient
from src.core.exceptions import (
    CollectorEmptyResultError,
    CollectorError,
    CollectorNotFoundError,
    CollectorParseError,
    CollectorRateLimitError,
    CollectorTimeoutError,
    CollectorUnavailableError,
    RetryableError,
)

FEED_URL = "https://toss.example.com/rss.xml"


def rss_document(*items: str) -> bytes:
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<rss version="2.0"><channel><title>Blog</title><link>https://toss.example.com</link>'
        + "".join(items)
        + "</channel></rss>"
    ).encode("utf-8")


def rss_item(n: int, title: str | None = None, description: str = "React 개발 이야기") -> str:
    return (
        "<item>"
        f"<title>{title or f'Post number {n}'}</title>"
        f"<link>https://toss.example.com/posts/{n}</link>"
        f"<description>{description}</description>"
        "<pubDate>Mon, 10 Mar 2025 09:00:00 +0900</pubDate>"
        "<category>React</category>"
        "</item>"
    )


def feed_client(handler) -> FeedClient:
    return FeedClient(httpx.AsyncClient(transport=httpx.MockTransport(handler)))


class TestFeedClient:
    """Tests for FeedClient status mapping."""

    @pytest.mark.asyncio
    async def test_returns_body(self):
        body = rss_document(rss_item(1))
        client = feed_client(lambda request: httpx.Response(200, content=body))

        assert await client.fetch("toss", FEED_URL) == body

    @pytest.mark.asyncio
    async def test_sends_feed_accept_header(self):
        seen = {}

        def handler(request):
            seen["accept"] = request.headers["accept"]
            return httpx.Response(200, content=b"<rss/>")

        await feed_client(handler).fetch("toss", FEED_URL)

        assert "application/rss+xml" in seen["accept"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status,error",
        [
            (404, CollectorNotFoundError),
            (410, CollectorNotFoundError),
            (500, CollectorUnavailableError),
            (503, CollectorUnavailableError),
            (403, CollectorError),
        ],
    )
    async def test_maps_status_codes(self, status, error):
        client = feed_client(lambda request: httpx.Response(status))

        with pytest.raises(error) as exc_info:
            await client.fetch("toss", FEED_URL)

        assert exc_info.value.source_id == "toss"

    @pytest.mark.asyncio
    async def test_rate_limit_retried_once_then_raised(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(429)

        with pytest.raises(CollectorRateLimitError):
            await feed_client(handler).fetch("toss", FEED_URL)

        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_timeout_is_retryable(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(CollectorTimeoutError) as exc_info:
            await feed_client(handler).fetch("toss", FEED_URL)

        assert isinstance(exc_info.value, RetryableError)

    @pytest.mark.asyncio
    async def test_connection_error_is_unavailable(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(CollectorUnavailableError):
            await feed_client(handler).fetch("toss", FEED_URL)


class TestParseEntryDate:
    """Tests for entry date parsing."""

    def test_struct_time_field(self):
        entry = {"published_parsed": (2025, 3, 9, 8, 30, 0, 6, 68, 0)}
        assert parse_entry_date(entry) == datetime(2025, 3, 9, 8, 30, tzinfo=timezone.utc)

    def test_string_converted_to_utc(self):
        entry = {"published": "2025-03-10T09:00:00+09:00"}
        assert parse_entry_date(entry) == datetime(2025, 3, 10, 0, 0, tzinfo=timezone.utc)

    def test_naive_string_taken_as_utc(self):
        entry = {"updated": "2025-03-10 09:00:00"}
        assert parse_entry_date(entry) == datetime(2025, 3, 10, 9, 0, tzinfo=timezone.utc)

    def test_garbage_is_none(self):
        assert parse_entry_date({"published": "not a date"}) is None

    def test_missing_is_none(self):
        assert parse_entry_date({}) is None


class TestSpamFilter:
    """Tests for the open tag feed quality filter."""

    def test_keeps_technical_post(self):
        title = "Building a React design system"
        assert not is_spam_entry(title, f"{title} with TypeScript components", "Jane Doe")

    def test_short_title(self):
        assert is_spam_entry("React", "React code", "Jane")

    def test_repeated_characters(self):
        assert is_spam_entry("Amazing code!!!!!!", "amazing code", "Jane")

    def test_arabic_author(self):
        title = "Understanding JavaScript closures"
        assert is_spam_entry(title, title, "محمد")

    def test_no_tech_keyword(self):
        title = "Ten things about gardening"
        assert is_spam_entry(title, title, "Jane")

    def test_excluded_topic(self):
        title = "Python scripts for crypto trading"
        assert is_spam_entry(title, title, "Jane")


class TestRssAdapter:
    """Tests for RssAdapter.collect."""

    def _adapter(self, make_platform, body: bytes, platform_id: str = "toss") -> RssAdapter:
        client = feed_client(lambda request: httpx.Response(200, content=body))
        return RssAdapter(make_platform(id=platform_id), AdapterContext(feed_client=client))

    @pytest.mark.asyncio
    async def test_maps_entries_to_records(self, make_platform):
        adapter = self._adapter(make_platform, rss_document(rss_item(1), rss_item(2)))

        records = await adapter.collect(limit=5)

        assert [r.link for r in records] == [
            "https://toss.example.com/posts/1",
            "https://toss.example.com/posts/2",
        ]
        first = records[0]
        assert first.kind == "rss"
        assert first.title == "Post number 1"
        assert first.categories == ("React",)
        assert first.published_at == datetime(2025, 3, 10, 0, 0, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_respects_limit(self, make_platform):
        adapter = self._adapter(make_platform, rss_document(*(rss_item(n) for n in range(8))))

        records = await adapter.collect(limit=3)

        assert len(records) == 3

    @pytest.mark.asyncio
    async def test_empty_feed(self, make_platform):
        adapter = self._adapter(make_platform, rss_document())

        with pytest.raises(CollectorEmptyResultError):
            await adapter.collect(limit=5)

    @pytest.mark.asyncio
    async def test_unparseable_feed(self, make_platform):
        adapter = self._adapter(make_platform, b"\x00\x01 this is not xml <<<")

        with pytest.raises((CollectorParseError, CollectorEmptyResultError)):
            await adapter.collect(limit=5)

    @pytest.mark.asyncio
    async def test_missing_feed_client(self, make_platform):
        adapter = RssAdapter(make_platform(), AdapterContext())

        with pytest.raises(CollectorError):
            await adapter.collect(limit=5)

    @pytest.mark.asyncio
    async def test_spam_filter_only_for_open_feeds(self, make_platform):
        body = rss_document(
            rss_item(1, title="Building React apps with hooks", description="react code"),
            rss_item(2, title="Bitcoin trading secrets", description="crypto trading code"),
        )

        medium = await self._adapter(make_platform, body, platform_id="medium").collect(limit=5)
        toss = await self._adapter(make_platform, body, platform_id="toss").collect(limit=5)

        assert [r.title for r in medium] == ["Building React apps with hooks"]
        assert len(toss) == 2

    @pytest.mark.asyncio
    async def test_feed_parsed_off_event_loop(self, make_platform, monkeypatch):
        parse = feedparser.parse
        threads: list[int] = []

        def recording_parse(body):
            threads.append(threading.get_ident())
            return parse(body)

        monkeypatch.setattr(feedparser, "parse", recording_parse)
        adapter = self._adapter(make_platform, rss_document(rss_item(1)))

        records = await adapter.collect(limit=5)

        assert len(records) == 1
        assert threads and threads[0] != threading.get_ident()
