"""Pydantic models for API requests and responses."""

from datetime import datetime, timezone
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from src.collectors.normalization.schema import Article


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# Feed Models
# =============================================================================


class FeedResponse(BaseModel):
    """Response for the corpus read endpoint."""

    articles: list[Article] = Field(..., description="Articles, newest first")
    total: int = Field(..., description="Matching articles before pagination")
    limit: int
    offset: int
    origin: Literal["cache", "fresh", "stale_cache"] = Field(
        ..., description="Where the corpus came from"
    )
    stale: bool = Field(False, description="True when serving an outdated cache after a failed refresh")
    last_updated: Optional[datetime] = Field(None, description="When the corpus was collected")
    hours_since_update: Optional[float] = Field(None, description="Age of the corpus in hours")


class CollectionSummaryResponse(BaseModel):
    """Summary of a collection run, returned by refresh and cron triggers."""

    success: bool = True
    job: str = Field(..., description="collect-feeds or collect-courses")
    total_articles: int
    cached_articles: Optional[int] = None
    duplicates_removed: int
    sources_succeeded: int
    sources_failed: int
    duration_ms: float
    started_at: datetime
    by_platform: dict[str, int] = Field(default_factory=dict)
    previous_update: Optional[datetime] = None
    hours_ago: Optional[float] = None
    sources: list[dict[str, Any]] = Field(default_factory=list)


# =============================================================================
# Cache Models
# =============================================================================


class CacheInfoResponse(BaseModel):
    last_updated: Optional[datetime] = None
    hours_since_update: Optional[float] = None
    article_count: int = 0
    stale: bool = Field(..., description="True when the next read triggers a collection")


class CacheClearResponse(BaseModel):
    success: bool = True
    cleared_at: datetime = Field(default_factory=_utcnow)


# =============================================================================
# Platform Models
# =============================================================================


class PlatformResponse(BaseModel):
    id: str
    name: str
    display_name: str
    type: str
    collection_method: str
    base_url: str
    rss_url: Optional[str] = None
    crawler_type: Optional[str] = None
    channel_name: Optional[str] = None
    description: str = ""
    is_active: bool
    limit: int


class PlatformListResponse(BaseModel):
    platforms: list[PlatformResponse]
    total: int
    by_type: dict[str, int] = Field(default_factory=dict)
    by_method: dict[str, int] = Field(default_factory=dict)


# =============================================================================
# Health Check Models
# =============================================================================


class HealthStatus(BaseModel):
    """Individual service health status."""

    status: Literal["healthy", "unhealthy", "degraded"] = Field(
        ..., description="Service status"
    )
    latency_ms: Optional[float] = Field(None, description="Response latency in milliseconds")
    message: Optional[str] = Field(None, description="Additional status message")


class HealthCheckResponse(BaseModel):
    """Response model for health check endpoint."""

    status: Literal["healthy", "unhealthy", "degraded"] = Field(
        ..., description="Overall system status"
    )
    version: str = Field(..., description="API version")
    timestamp: datetime = Field(..., description="Check timestamp")
    services: dict[str, HealthStatus] = Field(
        default_factory=dict,
        description="Individual service statuses",
    )
    uptime_seconds: Optional[float] = Field(None, description="Server uptime in seconds")


# =============================================================================
# Error Models
# =============================================================================


class ErrorResponse(BaseModel):
    """Standard error response model."""

    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Human-readable error message")
    detail: Optional[str] = Field(None, description="Additional error details")
    path: Optional[str] = Field(None, description="Request path that caused the error")
    timestamp: datetime = Field(default_factory=_utcnow, description="Error timestamp")


class ValidationErrorDetail(BaseModel):
    """Details for validation errors."""

    field: str = Field(..., description="Field that failed validation")
    message: str = Field(..., description="Validation error message")
    value: Optional[Any] = Field(None, description="Invalid value provided")


class ValidationErrorResponse(BaseModel):
    """Response for validation errors."""

    error: str = Field(default="validation_error", description="Error type")
    message: str = Field(default="Request validation failed", description="Error message")
    errors: list[ValidationErrorDetail] = Field(..., description="List of validation errors")
    timestamp: datetime = Field(default_factory=_utcnow, description="Error timestamp")
