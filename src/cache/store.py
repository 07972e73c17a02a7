"""
Cache Store client for the aggregated corpus.

The corpus is one record keyed by a fixed key (default "articles") holding
`{"articles": [...], "lastUpdated": <ISO timestamp>}`. It is replaced
wholesale on every write. Staleness policy is not decided here; callers get
`CacheInfo` and decide.

Usage:
    store = CacheStore(SupabaseCacheBackend(client, "content_cache", "articles"))

    await store.set_cached_articles(articles)
    cached = await store.get_cached_articles()
    info = await store.get_cache_info()
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Protocol

import structlog
from pydantic import ValidationError

from src.collectors.normalization.schema import Article
from src.core.exceptions import CacheStoreError
from src.monitoring.metrics import CACHE_AGE_HOURS

logger = structlog.get_logger(__name__)


# =============================================================================
# Backends
# =============================================================================


class CacheBackend(Protocol):
    """Key-value persistence the store writes through."""

    async def get(self, key: str) -> Optional[dict[str, Any]]: ...

    async def set(self, key: str, value: dict[str, Any]) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def upsert_articles(self, rows: list[dict[str, Any]]) -> None: ...

    async def ping(self) -> bool: ...


class InMemoryCacheBackend:
    """Process-local backend for development and tests."""

    def __init__(self):
        self.records: dict[str, dict[str, Any]] = {}
        self.articles: dict[str, dict[str, Any]] = {}

    async def get(self, key: str) -> Optional[dict[str, Any]]:
        return self.records.get(key)

    async def set(self, key: str, value: dict[str, Any]) -> None:
        self.records[key] = value

    async def delete(self, key: str) -> None:
        self.records.pop(key, None)

    async def upsert_articles(self, rows: list[dict[str, Any]]) -> None:
        for row in rows:
            self.articles[row["url"]] = row

    async def ping(self) -> bool:
        return True


class SupabaseCacheBackend:
    """Supabase tables as cache backend.

    The supabase client is synchronous; calls run in a worker thread.

    Args:
        client: Authenticated supabase Client
        cache_table: Table with `key` (unique) and `value` (jsonb) columns
        articles_table: Table receiving one row per article, unique on `url`
    """

    def __init__(self, client, cache_table: str = "content_cache", articles_table: str = "articles"):
        self._client = client
        self.cache_table = cache_table
        self.articles_table = articles_table

    async def get(self, key: str) -> Optional[dict[str, Any]]:
        def _query():
            return self._client.table(self.cache_table).select("value").eq("key", key).limit(1).execute()

        result = await asyncio.to_thread(_query)
        if not result.data:
            return None
        return result.data[0]["value"]

    async def set(self, key: str, value: dict[str, Any]) -> None:
        row = {"key": key, "value": value, "updated_at": datetime.now(timezone.utc).isoformat()}
        await asyncio.to_thread(
            lambda: self._client.table(self.cache_table).upsert(row, on_conflict="key").execute()
        )

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(
            lambda: self._client.table(self.cache_table).delete().eq("key", key).execute()
        )

    async def upsert_articles(self, rows: list[dict[str, Any]]) -> None:
        if not rows:
            return
        await asyncio.to_thread(
            lambda: self._client.table(self.articles_table).upsert(rows, on_conflict="url").execute()
        )

    async def ping(self) -> bool:
        await asyncio.to_thread(
            lambda: self._client.table(self.cache_table).select("key").limit(1).execute()
        )
        return True


# =============================================================================
# Store
# =============================================================================


@dataclass
class CacheInfo:
    """Age of the cached corpus. Both fields are None when nothing is cached."""

    last_updated: Optional[datetime]
    hours_since_update: Optional[float]
    article_count: int = 0

    @property
    def is_empty(self) -> bool:
        return self.last_updated is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
            "hours_since_update": round(self.hours_since_update, 2) if self.hours_since_update is not None else None,
            "article_count": self.article_count,
        }


def article_row(article: Article) -> dict[str, Any]:
    """Flat row for the articles table."""
    return {
        "id": article.id,
        "url": article.url,
        "title": article.title,
        "excerpt": article.excerpt,
        "platform_id": article.platform.id,
        "platform_name": article.platform.name,
        "author_name": article.author.name,
        "category": article.category.value,
        "content_type": article.content_type.value,
        "tags": article.tags,
        "thumbnail_url": article.thumbnail_url,
        "published_at": article.published_at.isoformat(),
    }


class CacheStore:
    """Reads and writes the cached corpus.

    Every backend failure surfaces as CacheStoreError, except the best-effort
    articles-table upsert, which is only logged.
    """

    def __init__(
        self,
        backend: CacheBackend,
        key: str = "articles",
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.backend = backend
        self.key = key
        self._clock = clock

    async def _read(self) -> Optional[dict[str, Any]]:
        try:
            return await self.backend.get(self.key)
        except Exception as e:
            logger.error("cache_read_failed", key=self.key, error=str(e))
            raise CacheStoreError("read", str(e), {"key": self.key})

    async def get_cached_articles(self) -> list[Article]:
        """Cached corpus in stored order; empty when nothing is cached."""
        record = await self._read()
        if not record:
            return []
        try:
            return [Article.model_validate(item) for item in record.get("articles", [])]
        except (ValidationError, TypeError, AttributeError) as e:
            logger.error("cache_payload_invalid", key=self.key, error=str(e))
            raise CacheStoreError("read", f"Malformed cache payload: {e}", {"key": self.key})

    async def set_cached_articles(self, articles: list[Article]) -> datetime:
        """Replace the cached corpus.

        Returns:
            The stored lastUpdated timestamp.
        """
        updated_at = self._clock()
        payload = {
            "articles": [a.model_dump(mode="json") for a in articles],
            "lastUpdated": updated_at.isoformat(),
        }
        try:
            await self.backend.set(self.key, payload)
        except Exception as e:
            logger.error("cache_write_failed", key=self.key, error=str(e))
            raise CacheStoreError("write", str(e), {"key": self.key, "articles": len(articles)})

        try:
            await self.backend.upsert_articles([article_row(a) for a in articles])
        except Exception as e:
            logger.warning("articles_upsert_failed", count=len(articles), error=str(e))

        CACHE_AGE_HOURS.set(0)
        logger.info("cache_written", key=self.key, articles=len(articles))
        return updated_at

    async def clear_cache(self) -> None:
        try:
            await self.backend.delete(self.key)
        except Exception as e:
            logger.error("cache_clear_failed", key=self.key, error=str(e))
            raise CacheStoreError("clear", str(e), {"key": self.key})
        logger.info("cache_cleared", key=self.key)

    async def get_cache_info(self) -> CacheInfo:
        record = await self._read()
        if not record or not record.get("lastUpdated"):
            return CacheInfo(last_updated=None, hours_since_update=None)

        try:
            last_updated = datetime.fromisoformat(record["lastUpdated"])
        except (TypeError, ValueError) as e:
            raise CacheStoreError("read", f"Bad lastUpdated value: {e}", {"key": self.key})
        if last_updated.tzinfo is None:
            last_updated = last_updated.replace(tzinfo=timezone.utc)

        hours = max(0.0, (self._clock() - last_updated).total_seconds() / 3600)
        CACHE_AGE_HOURS.set(hours)
        return CacheInfo(
            last_updated=last_updated,
            hours_since_update=hours,
            article_count=len(record.get("articles", [])),
        )

    async def ping(self) -> bool:
        """True when the backend answers."""
        try:
            return await self.backend.ping()
        except Exception as e:
            logger.warning("cache_ping_failed", error=str(e))
            return False
