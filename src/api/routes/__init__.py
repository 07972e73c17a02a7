"""API route modules."""

from src.api.routes.analytics import router as analytics_router
from src.api.routes.cache import router as cache_router
from src.api.routes.cron import router as cron_router
from src.api.routes.feeds import router as feeds_router
from src.api.routes.health import router as health_router
from src.api.routes.monitor import router as monitor_router
from src.api.routes.platforms import router as platforms_router
from src.api.routes.search import router as search_router

__all__ = [
    "analytics_router",
    "cache_router",
    "cron_router",
    "feeds_router",
    "health_router",
    "monitor_router",
    "platforms_router",
    "search_router",
]
