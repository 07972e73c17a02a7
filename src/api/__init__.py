"""
HoneyBee FastAPI Application.

- main: FastAPI application entry point and configuration
- routes/: API endpoint definitions organized by domain
- models: Pydantic request/response models
- dependencies: FastAPI dependency injection providers

API Structure:
- /health - Health check and readiness probes
- /api/v1/feeds - Current corpus and forced refresh
- /api/v1/cron - Scheduled collection triggers
- /api/v1/cache - Cache info and invalidation
- /api/v1/monitor - Collection statistics
- /api/v1/analytics, /api/v1/search - Corpus analytics
- /api/v1/platforms - Platform table
- /metrics - Prometheus

Example:
    from src.api.main import app

    # Run with: uvicorn src.api.main:app --reload
"""

from src.api.main import app

__all__ = ["app"]
