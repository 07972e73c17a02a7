"""
Core infrastructure modules for HoneyBee.

Provides common utilities used across the application:
- exceptions: Standardized exception hierarchy
- circuit_breaker: Per-source resilience
- rate_limiter: Per-host request spacing

The dependency container lives in src.core.container and is imported from
there directly, since it composes every other package.
"""

from src.core.exceptions import (
    HoneyBeeError,
    RetryableError,
    PermanentError,
    InitializationError,
    ConfigurationError,
    CollectorError,
    CollectorRateLimitError,
    CollectorTimeoutError,
    CollectorUnavailableError,
    CollectorNotFoundError,
    CollectorParseError,
    CollectorEmptyResultError,
    UnsupportedCollectionMethodError,
    NormalizationError,
    BrowserPoolError,
    BrowserPoolExhaustedError,
    BrowserPoolClosedError,
    BrowserLaunchError,
    CacheStoreError,
    CollectionRunError,
    AllSourcesFailedError,
    CircuitBreakerOpenError,
)

from src.core.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerRegistry,
    CircuitState,
)

from src.core.rate_limiter import HostRateLimiter, RateLimitResult

__all__ = [
    # Exceptions
    "HoneyBeeError",
    "RetryableError",
    "PermanentError",
    "InitializationError",
    "ConfigurationError",
    "CollectorError",
    "CollectorRateLimitError",
    "CollectorTimeoutError",
    "CollectorUnavailableError",
    "CollectorNotFoundError",
    "CollectorParseError",
    "CollectorEmptyResultError",
    "UnsupportedCollectionMethodError",
    "NormalizationError",
    "BrowserPoolError",
    "BrowserPoolExhaustedError",
    "BrowserPoolClosedError",
    "BrowserLaunchError",
    "CacheStoreError",
    "CollectionRunError",
    "AllSourcesFailedError",
    "CircuitBreakerOpenError",
    # Circuit Breaker
    "CircuitBreaker",
    "CircuitBreakerRegistry",
    "CircuitState",
    # Rate limiting
    "HostRateLimiter",
    "RateLimitResult",
]
