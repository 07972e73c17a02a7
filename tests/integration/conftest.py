"""Integration test configuration.

Feeds are served from memory through httpx.MockTransport, so the real
FeedClient, RssAdapter, Normalizer and CacheStore run end to end without
network access.
"""

import httpx
import pytest

from src.cache.store import CacheStore, InMemoryCacheBackend
from src.collectors.base import AdapterContext
from src.collectors.normalization.pipeline import Normalizer
from src.collectors.rss.client import FeedClient
from src.monitoring.collection_monitor import CollectionMonitor
from src.orchestration.aggregator import CollectionOrchestrator


@pytest.fixture
def feeds():
    """URL -> response, or a list of responses served in turn (the last repeats).

    Unknown URLs answer 404.
    """
    return {}


@pytest.fixture
def requests_seen():
    return []


@pytest.fixture
def feed_client(feeds, requests_seen):
    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        requests_seen.append(url)
        response = feeds.get(url, httpx.Response(404))
        if isinstance(response, list):
            return response.pop(0) if len(response) > 1 else response[0]
        return response

    return FeedClient(httpx.AsyncClient(transport=httpx.MockTransport(handler)))


@pytest.fixture
def cache_backend():
    return InMemoryCacheBackend()


@pytest.fixture
def build_orchestrator(settings, feed_client, cache_backend):
    """Orchestrator over the real adapters for the given platforms."""

    def _build(platforms):
        return CollectionOrchestrator(
            cache=CacheStore(cache_backend),
            normalizer=Normalizer(),
            monitor=CollectionMonitor(),
            adapter_context=AdapterContext(feed_client=feed_client),
            settings=settings,
            platforms=lambda: platforms,
        )

    return _build
