"""
HoneyBee - multi-source IT content collection pipeline.

This package contains the core modules of the HoneyBee system:
- collectors: source adapters (RSS, rendered pages, course listings) and normalization
- browser: shared headless browser pool
- orchestration: concurrent collection, merge and deduplication
- cache: cached corpus persistence (Supabase or in-memory)
- analytics: trending, platform, keyword, author and search over the corpus
- monitoring: collection statistics and Prometheus metrics
- scheduler: daily collection jobs
- api: FastAPI application and endpoints
- config: Pydantic settings and the platform table
- core: exceptions, circuit breakers, rate limiting and the dependency container
"""

__version__ = "1.0.0"
