"""
Circuit Breaker for collection sources.

A platform that keeps failing is skipped for a while instead of being hit
(and retried) on every run.

States:
- CLOSED: Normal operation, the source is collected
- OPEN: Source is failing, collection is skipped
- HALF_OPEN: One trial collection is allowed to test recovery

Usage:
    breakers = CircuitBreakerRegistry(failure_threshold=3, recovery_timeout=1800)
    breaker = breakers.get("toss")

    if breaker.can_execute():
        try:
            articles = await adapter.collect(limit)
            await breaker.record_success()
        except CollectorError:
            await breaker.record_failure()
            raise
"""

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

import structlog

from src.monitoring.metrics import (
    record_circuit_breaker_failure,
    update_circuit_breaker_state,
)

logger = structlog.get_logger(__name__)


class CircuitState(Enum):
    """Circuit breaker states."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass
class CircuitBreaker:
    """
    Circuit breaker guarding one collection source.

    Args:
        name: Source identifier (platform id)
        failure_threshold: Consecutive failed runs before opening the circuit
        recovery_timeout: Seconds to wait before a trial run
        success_threshold: Trial successes needed to close the circuit again
    """

    name: str
    failure_threshold: int = 3
    recovery_timeout: float = 1800.0
    success_threshold: int = 1

    _state: CircuitState = field(default=CircuitState.CLOSED, init=False)
    _failure_count: int = field(default=0, init=False)
    _success_count: int = field(default=0, init=False)
    _last_failure_time: Optional[float] = field(default=None, init=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False)

    @property
    def state(self) -> CircuitState:
        """Get current circuit state, checking for recovery timeout."""
        if self._state == CircuitState.OPEN and self._last_failure_time is not None:
            if time.monotonic() - self._last_failure_time >= self.recovery_timeout:
                self._state = CircuitState.HALF_OPEN
                self._success_count = 0
                update_circuit_breaker_state(self.name, CircuitState.HALF_OPEN.value)
                logger.info("circuit_breaker_half_open", name=self.name)
        return self._state

    @property
    def failure_count(self) -> int:
        return self._failure_count

    def can_execute(self) -> bool:
        """Check if the source may be collected now."""
        return self.state in (CircuitState.CLOSED, CircuitState.HALF_OPEN)

    def time_until_recovery(self) -> float:
        """Get seconds until the circuit allows a trial run."""
        if self._state != CircuitState.OPEN or self._last_failure_time is None:
            return 0.0
        elapsed = time.monotonic() - self._last_failure_time
        return max(0.0, self.recovery_timeout - elapsed)

    async def record_success(self) -> None:
        """Record a successful collection."""
        async with self._lock:
            if self._state == CircuitState.HALF_OPEN:
                self._success_count += 1
                if self._success_count >= self.success_threshold:
                    self._state = CircuitState.CLOSED
                    self._failure_count = 0
                    self._success_count = 0
                    update_circuit_breaker_state(self.name, CircuitState.CLOSED.value)
                    logger.info("circuit_breaker_closed", name=self.name)
            elif self._state == CircuitState.CLOSED:
                self._failure_count = 0

    async def record_failure(self) -> None:
        """Record a failed collection."""
        async with self._lock:
            self._failure_count += 1
            self._last_failure_time = time.monotonic()
            record_circuit_breaker_failure(self.name)

            if self._state == CircuitState.HALF_OPEN:
                self._state = CircuitState.OPEN
                update_circuit_breaker_state(self.name, CircuitState.OPEN.value)
                logger.warning("circuit_breaker_reopened", name=self.name)
            elif (
                self._state == CircuitState.CLOSED
                and self._failure_count >= self.failure_threshold
            ):
                self._state = CircuitState.OPEN
                update_circuit_breaker_state(self.name, CircuitState.OPEN.value)
                logger.warning(
                    "circuit_breaker_opened",
                    name=self.name,
                    failure_count=self._failure_count,
                    recovery_timeout=self.recovery_timeout,
                )

    def reset(self) -> None:
        """Reset circuit breaker to closed state."""
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._success_count = 0
        self._last_failure_time = None
        update_circuit_breaker_state(self.name, CircuitState.CLOSED.value)


class CircuitBreakerRegistry:
    """Per-source circuit breakers, owned by the dependency container."""

    def __init__(self, failure_threshold: int = 3, recovery_timeout: float = 1800.0):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self._breakers: dict[str, CircuitBreaker] = {}

    def get(self, name: str) -> CircuitBreaker:
        """Get or create the breaker for a source."""
        if name not in self._breakers:
            self._breakers[name] = CircuitBreaker(
                name=name,
                failure_threshold=self.failure_threshold,
                recovery_timeout=self.recovery_timeout,
            )
        return self._breakers[name]

    def snapshot(self) -> dict[str, str]:
        """Current state of every known breaker."""
        return {name: b.state.value for name, b in self._breakers.items()}

    def reset_all(self) -> None:
        for breaker in self._breakers.values():
            breaker.reset()
