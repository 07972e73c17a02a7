"""
Application Settings.

Centralized configuration using Pydantic Settings with environment variable loading.
Every value has a development default so the collector can run locally without a
`.env` file; the cache falls back to an in-process backend when Supabase is not
configured.

Production Mode:
    When app_env="production", additional validations apply:
    - cron_secret must be set
    - debug must be False
    - cors_allowed_origins cannot be ["*"]
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Supabase (Cache Store)
    # -------------------------------------------------------------------------
    supabase_url: str | None = Field(default=None, description="Supabase project URL")
    supabase_key: SecretStr | None = Field(
        default=None, description="Supabase anon or service key"
    )
    cache_table: str = Field(
        default="content_cache",
        description="Key-value table holding the aggregated corpus",
    )
    articles_table: str = Field(
        default="articles",
        description="Table receiving best-effort article upserts (conflict on url)",
    )

    # -------------------------------------------------------------------------
    # Collection
    # -------------------------------------------------------------------------
    collection_max_concurrency: int = Field(
        default=8,
        ge=1,
        description="Maximum number of non-browser adapters running at once",
    )
    collection_default_timeout_seconds: float = Field(
        default=12.0,
        gt=0,
        description="Per-adapter timeout when a platform does not configure one",
    )
    collection_run_budget_seconds: float = Field(
        default=300.0,
        gt=0,
        description="Upper bound for a whole collection run",
    )
    collection_default_retries: int = Field(
        default=3,
        ge=1,
        description="Attempts per adapter when a platform does not configure retries",
    )
    collection_retry_backoff_seconds: float = Field(
        default=2.0,
        ge=0,
        description="Base of the exponential backoff between adapter attempts",
    )
    rss_requests_per_host_per_second: int = Field(
        default=2,
        ge=1,
        description="Outbound feed requests allowed per host per second",
    )
    synthetic_metrics: bool = Field(
        default=False,
        description="Fill engagement counters with generated numbers (marked as synthetic)",
    )
    http_user_agent: str = Field(
        default=(
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
        ),
        description="User agent for feed requests and browser contexts",
    )

    # -------------------------------------------------------------------------
    # Cache
    # -------------------------------------------------------------------------
    cache_key: str = Field(default="articles", description="Cache record key")
    cache_stale_hours: float = Field(
        default=24.0,
        gt=0,
        description="Age after which the cached corpus is refreshed",
    )
    max_cached_articles: int = Field(
        default=300,
        ge=1,
        description="Newest N articles kept in the cache record",
    )

    # -------------------------------------------------------------------------
    # Browser Pool (Playwright)
    # -------------------------------------------------------------------------
    browser_max_instances: int = Field(default=3, ge=1)
    browser_max_pages_per_instance: int = Field(default=5, ge=1)
    browser_idle_timeout_seconds: float = Field(
        default=300.0,
        description="Idle browsers older than this are closed",
    )
    browser_acquire_timeout_seconds: float = Field(
        default=30.0,
        description="How long acquire() waits for a free slot before failing",
    )
    browser_headless: bool = Field(default=True)
    browser_health_check_interval_seconds: float = Field(default=30.0)
    browser_navigation_timeout_seconds: float = Field(default=30.0)
    course_page_delay_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Pause between paginated course listing requests",
    )

    # -------------------------------------------------------------------------
    # Collection Monitor
    # -------------------------------------------------------------------------
    monitor_max_errors: int = Field(default=1000, ge=10)
    monitor_retention_hours: int = Field(default=24, ge=1)

    # -------------------------------------------------------------------------
    # Scheduler
    # -------------------------------------------------------------------------
    scheduler_enabled: bool = Field(default=True)
    collection_cron_hour: int = Field(
        default=20,
        ge=0,
        le=23,
        description="UTC hour of the daily collection (20 UTC = 05:00 KST)",
    )
    collection_cron_minute: int = Field(default=0, ge=0, le=59)

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------
    app_env: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment",
    )
    debug: bool = Field(
        default=True,
        description="Enable debug mode",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8000)

    # -------------------------------------------------------------------------
    # Security Settings
    # -------------------------------------------------------------------------
    cron_secret: SecretStr | None = Field(
        default=None,
        description="Bearer token required by manual and cron collection triggers",
    )
    api_key: SecretStr | None = Field(
        default=None,
        description="API key for authentication. If set, all requests require X-API-Key header.",
    )
    api_key_enabled: bool = Field(
        default=False,
        description="Enable API key authentication.",
    )

    # -------------------------------------------------------------------------
    # CORS Settings
    # -------------------------------------------------------------------------
    cors_allowed_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:8000"],
        description="Allowed CORS origins. Use ['*'] for development only.",
    )
    cors_allow_credentials: bool = Field(default=True)

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.app_env == "development"

    @property
    def supabase_configured(self) -> bool:
        """True when both Supabase URL and key are present."""
        return bool(self.supabase_url and self.supabase_key)

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """Validate that production settings are secure."""
        if self.app_env == "production":
            errors = []

            if not self.cron_secret:
                errors.append("cron_secret must be set in production")

            if self.api_key_enabled and not self.api_key:
                errors.append("api_key must be set when api_key_enabled is True")

            if self.debug:
                errors.append("debug must be False in production")

            if "*" in self.cors_allowed_origins:
                errors.append("cors_allowed_origins cannot contain '*' in production")

            if errors:
                raise ValueError(
                    f"Production configuration errors: {'; '.join(errors)}"
                )

        return self


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload settings if needed.
    """
    return Settings()
