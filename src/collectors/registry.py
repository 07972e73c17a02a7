"""Adapter registry for runtime adapter selection.

Provides decorator-based registration and a factory resolving a platform
descriptor to its adapter. RSS platforms resolve by collection method, crawler
platforms by their crawler type.
"""

from typing import TYPE_CHECKING

from src.config.platforms import CollectionMethod, PlatformConfig
from src.core.exceptions import UnsupportedCollectionMethodError

if TYPE_CHECKING:
    from src.collectors.base import AdapterContext, SourceAdapter


_adapters: dict[str, type["SourceAdapter"]] = {}


def register_adapter(*keys: str):
    """Decorator to register an adapter class under one or more keys.

    Args:
        keys: "rss" for the feed adapter, or crawler types it handles.

    Example:
        @register_adapter("naver-d2", "line-engineering")
        class PageCardAdapter(SourceAdapter):
            ...
    """

    def decorator(cls: type["SourceAdapter"]):
        for key in keys:
            _adapters[key] = cls
        return cls

    return decorator


def adapter_key(platform: PlatformConfig) -> str:
    """Registry key a platform resolves to."""
    if platform.collection_method == CollectionMethod.CRAWLER:
        return platform.crawler_type or ""
    return platform.collection_method.value


def create_adapter(platform: PlatformConfig, context: "AdapterContext") -> "SourceAdapter":
    """Factory function to get an adapter instance for a platform.

    Raises:
        UnsupportedCollectionMethodError: No adapter handles the platform.
    """
    key = adapter_key(platform)
    if key not in _adapters:
        raise UnsupportedCollectionMethodError(
            platform.id,
            f"No adapter for collection method '{platform.collection_method.value}' ({key or 'unset'})",
            {"method": platform.collection_method.value, "key": key},
        )
    return _adapters[key](platform, context)


def list_adapters() -> list[str]:
    """List all registered adapter keys."""
    return list(_adapters.keys())
