"""
Dependency Injection Container for HoneyBee.

Owns the long-lived services of the collection pipeline and their lifecycle:
the HTTP client, the browser pool, the cache store, the monitor and the
orchestrator that ties them together.

Usage:
    # At application startup
    container = DependencyContainer()
    await container.initialize()

    report = await container.orchestrator.collect_fresh()

    # At shutdown
    await container.shutdown()
"""

from __future__ import annotations

import httpx
import structlog

from src.browser.pool import BrowserPool, PlaywrightLauncher
from src.cache.store import CacheStore, InMemoryCacheBackend, SupabaseCacheBackend
from src.collectors.base import AdapterContext
from src.collectors.normalization.pipeline import Normalizer
from src.collectors.rss.client import FeedClient
from src.config.settings import Settings, get_settings
from src.core.circuit_breaker import CircuitBreakerRegistry
from src.core.exceptions import InitializationError
from src.core.rate_limiter import HostRateLimiter
from src.monitoring.collection_monitor import CollectionMonitor
from src.orchestration.aggregator import CollectionOrchestrator

logger = structlog.get_logger(__name__)


class DependencyContainer:
    """
    Central container for all service dependencies.

    Services are created on first access and cached. `initialize()` starts
    the ones that need a running event loop.

    Example:
        container = DependencyContainer(settings)
        await container.initialize()

        snapshot = await container.orchestrator.collect_cached_or_fresh()

        await container.shutdown()
    """

    def __init__(self, settings: Settings | None = None):
        """
        Initialize the container.

        Args:
            settings: Application settings. Defaults to get_settings().
        """
        self._settings = settings or get_settings()
        self._http: httpx.AsyncClient | None = None
        self._browser_pool: BrowserPool | None = None
        self._cache: CacheStore | None = None
        self._monitor: CollectionMonitor | None = None
        self._breakers: CircuitBreakerRegistry | None = None
        self._orchestrator: CollectionOrchestrator | None = None
        self._initialized = False

        logger.info("dependency_container_created")

    @property
    def settings(self) -> Settings:
        """Get application settings."""
        return self._settings

    @property
    def http(self) -> httpx.AsyncClient:
        """Shared HTTP client for feed requests."""
        if self._http is None:
            self._http = httpx.AsyncClient(
                headers={"User-Agent": self._settings.http_user_agent},
                timeout=self._settings.collection_default_timeout_seconds,
                follow_redirects=True,
            )
        return self._http

    @property
    def browser_pool(self) -> BrowserPool:
        """Headless browser pool (browsers launch lazily on first acquire)."""
        if self._browser_pool is None:
            s = self._settings
            self._browser_pool = BrowserPool(
                max_browsers=s.browser_max_instances,
                max_pages_per_browser=s.browser_max_pages_per_instance,
                idle_timeout=s.browser_idle_timeout_seconds,
                acquire_timeout=s.browser_acquire_timeout_seconds,
                health_check_interval=s.browser_health_check_interval_seconds,
                launcher=PlaywrightLauncher(headless=s.browser_headless),
                context_options={"user_agent": s.http_user_agent},
            )
        return self._browser_pool

    @property
    def cache(self) -> CacheStore:
        """
        Get the cache store (lazy initialization).

        Uses Supabase when configured, otherwise an in-process backend.

        Raises:
            InitializationError: If the Supabase client cannot be created.
        """
        if self._cache is None:
            s = self._settings
            if s.supabase_configured:
                try:
                    from supabase import create_client

                    client = create_client(s.supabase_url, s.supabase_key.get_secret_value())
                except Exception as e:
                    logger.error("supabase_client_creation_failed", error=str(e))
                    raise InitializationError(
                        "CacheStore",
                        f"Failed to create Supabase client: {e}",
                        {"url": s.supabase_url},
                    )
                backend = SupabaseCacheBackend(client, s.cache_table, s.articles_table)
                logger.info("cache_backend_created", backend="supabase")
            else:
                backend = InMemoryCacheBackend()
                logger.warning("cache_backend_in_memory", reason="supabase not configured")
            self._cache = CacheStore(backend, key=s.cache_key)
        return self._cache

    @property
    def monitor(self) -> CollectionMonitor:
        if self._monitor is None:
            self._monitor = CollectionMonitor(
                max_errors=self._settings.monitor_max_errors,
                retention_hours=self._settings.monitor_retention_hours,
            )
        return self._monitor

    @property
    def breakers(self) -> CircuitBreakerRegistry:
        if self._breakers is None:
            self._breakers = CircuitBreakerRegistry()
        return self._breakers

    @property
    def orchestrator(self) -> CollectionOrchestrator:
        """The collection orchestrator wired to every other service."""
        if self._orchestrator is None:
            s = self._settings
            context = AdapterContext(
                feed_client=FeedClient(
                    self.http,
                    HostRateLimiter(limit=s.rss_requests_per_host_per_second, window=1.0),
                ),
                browser_pool=self.browser_pool,
                navigation_timeout_seconds=s.browser_navigation_timeout_seconds,
                page_delay_seconds=s.course_page_delay_seconds,
            )
            self._orchestrator = CollectionOrchestrator(
                cache=self.cache,
                normalizer=Normalizer(synthetic_metrics=s.synthetic_metrics),
                monitor=self.monitor,
                adapter_context=context,
                breakers=self.breakers,
                settings=s,
            )
        return self._orchestrator

    async def initialize(self) -> None:
        """
        Start background services and verify the cache store answers.

        An unreachable cache is logged, not fatal: the service can still serve
        health checks and retry on the next request.

        Raises:
            InitializationError: If a core service cannot be created.
        """
        if self._initialized:
            logger.warning("container_already_initialized")
            return

        logger.info("container_initializing")

        try:
            _ = self.orchestrator
            await self.browser_pool.start()

            if not await self.cache.ping():
                logger.warning("cache_store_unreachable_at_startup")

            self._initialized = True
            logger.info("container_initialized")

        except InitializationError:
            raise
        except Exception as e:
            logger.error(
                "container_initialization_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            raise InitializationError(
                "DependencyContainer",
                f"Failed to initialize dependencies: {e}",
            )

    async def shutdown(self) -> None:
        """
        Shutdown all services gracefully.

        Call this at application shutdown.
        """
        logger.info("container_shutting_down")

        if self._browser_pool is not None:
            try:
                await self._browser_pool.shutdown()
                logger.info("browser_pool_closed")
            except Exception as e:
                logger.error("browser_pool_close_error", error=str(e))

        if self._http is not None:
            try:
                await self._http.aclose()
            except Exception as e:
                logger.error("http_client_close_error", error=str(e))
            self._http = None

        self._initialized = False
        logger.info("container_shutdown_complete")

    @property
    def is_initialized(self) -> bool:
        """Check if container has been initialized."""
        return self._initialized


# Global container instance for convenience
# Prefer passing container explicitly via dependency injection
_container: DependencyContainer | None = None


def get_container() -> DependencyContainer:
    """
    Get the global container instance.

    Creates one if it doesn't exist.
    """
    global _container
    if _container is None:
        _container = DependencyContainer()
    return _container


async def initialize_container() -> DependencyContainer:
    """Initialize and return the global container."""
    container = get_container()
    await container.initialize()
    return container


async def shutdown_container() -> None:
    """Shutdown and drop the global container."""
    global _container
    if _container is not None:
        await _container.shutdown()
        _container = None
