"""FastAPI dependency injection providers.

Route handlers receive services through these providers, all backed by the
DependencyContainer, so tests can swap any of them with
`app.dependency_overrides`.
"""

import secrets
from typing import Optional

import structlog
from fastapi import Depends, Header, HTTPException, status

from src.browser.pool import BrowserPool
from src.cache.store import CacheStore
from src.config.settings import Settings, get_settings
from src.core.container import DependencyContainer, get_container
from src.monitoring.collection_monitor import CollectionMonitor
from src.orchestration.aggregator import CollectionOrchestrator, CorpusSnapshot
from src.scheduler.scheduler import Scheduler

logger = structlog.get_logger(__name__)

# Global scheduler instance, set on startup
_scheduler_instance: Optional[Scheduler] = None


def get_dependency_container() -> DependencyContainer:
    return get_container()


def get_orchestrator(
    container: DependencyContainer = Depends(get_dependency_container),
) -> CollectionOrchestrator:
    return container.orchestrator


def get_cache_store(
    container: DependencyContainer = Depends(get_dependency_container),
) -> CacheStore:
    return container.cache


def get_monitor(
    container: DependencyContainer = Depends(get_dependency_container),
) -> CollectionMonitor:
    return container.monitor


def get_browser_pool(
    container: DependencyContainer = Depends(get_dependency_container),
) -> BrowserPool:
    return container.browser_pool


async def get_corpus(
    orchestrator: CollectionOrchestrator = Depends(get_orchestrator),
) -> CorpusSnapshot:
    """
    The current corpus, from cache when fresh enough.

    Raises:
        CollectionRunError: Nothing cached and collection failed (mapped to 503).
    """
    return await orchestrator.collect_cached_or_fresh()


def get_scheduler() -> Optional[Scheduler]:
    """Get the global scheduler instance, or None before startup."""
    return _scheduler_instance


def set_scheduler(scheduler: Optional[Scheduler]) -> None:
    """
    Set the global scheduler instance.

    Called during application startup.
    """
    global _scheduler_instance
    _scheduler_instance = scheduler


def verify_cron_secret(
    authorization: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> None:
    """
    Require `Authorization: Bearer <cron_secret>`.

    Fails closed: when no secret is configured every request is rejected.
    """
    expected = settings.cron_secret.get_secret_value() if settings.cron_secret else None
    if not expected:
        logger.warning("cron_secret_not_configured")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not secrets.compare_digest(token, expected):
        logger.warning("unauthorized_trigger_attempt")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


def reset_dependencies() -> None:
    """
    Reset all global dependency instances.

    Useful for testing or application shutdown.
    """
    global _scheduler_instance
    _scheduler_instance = None
