"""
Cache Store for the aggregated corpus.

- store: CacheStore client plus Supabase and in-memory backends
"""

from src.cache.store import (
    CacheBackend,
    CacheInfo,
    CacheStore,
    InMemoryCacheBackend,
    SupabaseCacheBackend,
)

__all__ = [
    "CacheBackend",
    "CacheInfo",
    "CacheStore",
    "InMemoryCacheBackend",
    "SupabaseCacheBackend",
]
