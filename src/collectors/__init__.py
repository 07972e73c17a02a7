"""
Source adapters.

Each adapter fetches and parses one platform and returns raw records:

- rss: RSS/Atom feeds (corporate blogs, YouTube channels, community feeds)
- browser: headless-browser rendering for sites without a usable feed
- courses: paginated course listings on educational platforms

Importing this package registers every adapter family with the registry.

Example:
    from src.collectors import AdapterContext, create_adapter

    adapter = create_adapter(platform, AdapterContext(feed_client=client))
    records = await adapter.collect(limit=platform.limit)
"""

from src.collectors.base import AdapterContext, SourceAdapter
from src.collectors.registry import (
    adapter_key,
    create_adapter,
    list_adapters,
    register_adapter,
)
from src.collectors.rss.adapter import RssAdapter
from src.collectors.browser.adapter import PageCardAdapter
from src.collectors.courses.adapter import CourseListingAdapter

__all__ = [
    "AdapterContext",
    "SourceAdapter",
    "adapter_key",
    "create_adapter",
    "list_adapters",
    "register_adapter",
    "RssAdapter",
    "PageCardAdapter",
    "CourseListingAdapter",
]
