"""
Core exception hierarchy for HoneyBee.

Provides standardized exception types with categorization for retry logic.
Source-level errors (CollectorError and BrowserPoolError subclasses) are
absorbed by the orchestrator; run-level errors (CollectionRunError) reach
callers so "the pipeline is down" is never confused with "nothing new today".
"""

from typing import Any, Optional


# =============================================================================
# Base Exceptions
# =============================================================================


class HoneyBeeError(Exception):
    """Base exception for all HoneyBee errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class RetryableError(HoneyBeeError):
    """
    Transient errors that should be retried.

    Examples: Rate limits, timeouts, temporary network issues.
    """

    pass


class PermanentError(HoneyBeeError):
    """
    Errors that won't be fixed by retrying.

    Examples: Invalid configuration, unparseable documents, closed resources.
    """

    pass


# =============================================================================
# Initialization / Configuration Errors
# =============================================================================


class InitializationError(PermanentError):
    """Raised when a critical component fails to initialize."""

    def __init__(self, component: str, message: str, details: Optional[dict[str, Any]] = None):
        self.component = component
        super().__init__(f"[{component}] {message}", details)


class ConfigurationError(PermanentError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, config_key: Optional[str] = None):
        self.config_key = config_key
        details = {"config_key": config_key} if config_key else None
        super().__init__(message, details)


# =============================================================================
# Collector (Source-level) Errors
# =============================================================================


class CollectorError(HoneyBeeError):
    """Base exception for source adapter errors."""

    def __init__(
        self,
        source_id: str,
        message: str,
        details: Optional[dict[str, Any]] = None,
    ):
        self.source_id = source_id
        super().__init__(f"[{source_id}] {message}", details)


class CollectorRateLimitError(CollectorError, RetryableError):
    """Raised when a source rate-limits us (HTTP 429)."""

    pass


class CollectorTimeoutError(CollectorError, RetryableError):
    """Raised when a source does not answer within its timeout."""

    pass


class CollectorUnavailableError(CollectorError, RetryableError):
    """Raised when a source is unreachable or its circuit is open."""

    pass


class CollectorNotFoundError(CollectorError, PermanentError):
    """Raised when a source URL returns 404."""

    pass


class CollectorParseError(CollectorError, PermanentError):
    """Raised when a source document cannot be parsed."""

    pass


class CollectorEmptyResultError(CollectorError, RetryableError):
    """Raised when a source parsed cleanly but yielded no items."""

    pass


class UnsupportedCollectionMethodError(CollectorError, PermanentError):
    """Raised when no adapter is registered for a platform's method."""

    pass


class NormalizationError(PermanentError):
    """Raised when a raw record cannot become an Article."""

    def __init__(self, source_id: str, message: str, details: Optional[dict[str, Any]] = None):
        self.source_id = source_id
        super().__init__(f"[{source_id}] {message}", details)


# =============================================================================
# Browser Pool Errors
# =============================================================================


class BrowserPoolError(HoneyBeeError):
    """Base exception for browser pool errors."""

    pass


class BrowserPoolExhaustedError(BrowserPoolError, RetryableError):
    """Raised when no page could be acquired within the acquire timeout."""

    def __init__(self, waited_seconds: float, capacity: int):
        self.waited_seconds = waited_seconds
        self.capacity = capacity
        super().__init__(
            f"No browser page available after {waited_seconds:.1f}s",
            {"waited_seconds": waited_seconds, "capacity": capacity},
        )


class BrowserPoolClosedError(BrowserPoolError, PermanentError):
    """Raised when the pool is shut down or a handle was invalidated."""

    pass


class BrowserLaunchError(BrowserPoolError, RetryableError):
    """Raised when a browser process could not be started."""

    pass


# =============================================================================
# Cache Store Errors
# =============================================================================


class CacheStoreError(RetryableError):
    """Raised when the cache backend is unreachable or returns bad data."""

    def __init__(self, operation: str, message: str, details: Optional[dict[str, Any]] = None):
        self.operation = operation
        super().__init__(f"Cache {operation} failed: {message}", details)


# =============================================================================
# Run-level Errors
# =============================================================================


class CollectionRunError(HoneyBeeError):
    """Raised when a collection run as a whole failed."""

    pass


class AllSourcesFailedError(CollectionRunError):
    """Raised when every dispatched source failed in the same run."""

    def __init__(self, failures: dict[str, str]):
        self.failures = failures
        super().__init__(
            f"All {len(failures)} sources failed",
            {"failures": failures},
        )


# =============================================================================
# Circuit Breaker
# =============================================================================


class CircuitBreakerOpenError(RetryableError):
    """Raised when circuit breaker is open and blocking requests."""

    def __init__(self, service: str, recovery_time: float):
        self.service = service
        self.recovery_time = recovery_time
        super().__init__(
            f"Circuit breaker open for {service}. Recovery in {recovery_time:.1f}s",
            {"service": service, "recovery_time": recovery_time},
        )
