"""Unit tests for the per-source circuit breaker."""

import pytest

from src.core.circuit_breaker import CircuitBreaker, CircuitBreakerRegistry, CircuitState


class TestCircuitBreaker:
    """Test circuit breaker state transitions."""

    @pytest.mark.asyncio
    async def test_opens_after_threshold(self):
        """Consecutive failures open the circuit."""
        breaker = CircuitBreaker(name="toss", failure_threshold=2)

        await breaker.record_failure()
        assert breaker.can_execute()

        await breaker.record_failure()
        assert breaker.state == CircuitState.OPEN
        assert not breaker.can_execute()
        assert breaker.time_until_recovery() > 0

    @pytest.mark.asyncio
    async def test_success_resets_failure_count(self):
        """A success between failures starts the count over."""
        breaker = CircuitBreaker(name="toss", failure_threshold=2)

        await breaker.record_failure()
        await breaker.record_success()
        await breaker.record_failure()

        assert breaker.state == CircuitState.CLOSED
        assert breaker.failure_count == 1

    @pytest.mark.asyncio
    async def test_half_open_after_recovery_timeout(self):
        """An open circuit allows a trial run after the timeout."""
        breaker = CircuitBreaker(name="toss", failure_threshold=1, recovery_timeout=60)

        await breaker.record_failure()
        assert breaker.state == CircuitState.OPEN

        # Age the failure past the recovery timeout
        breaker._last_failure_time -= 61
        assert breaker.state == CircuitState.HALF_OPEN
        assert breaker.can_execute()

    @pytest.mark.asyncio
    async def test_trial_success_closes(self):
        breaker = CircuitBreaker(name="toss", failure_threshold=1, recovery_timeout=0)

        await breaker.record_failure()
        assert breaker.state == CircuitState.HALF_OPEN

        await breaker.record_success()

        assert breaker.state == CircuitState.CLOSED
        assert breaker.failure_count == 0

    @pytest.mark.asyncio
    async def test_trial_failure_reopens(self):
        breaker = CircuitBreaker(name="toss", failure_threshold=1, recovery_timeout=60)

        await breaker.record_failure()
        breaker._last_failure_time -= 61
        assert breaker.state == CircuitState.HALF_OPEN

        await breaker.record_failure()
        assert breaker.state == CircuitState.OPEN

    @pytest.mark.asyncio
    async def test_reset(self):
        breaker = CircuitBreaker(name="toss", failure_threshold=1)
        await breaker.record_failure()

        breaker.reset()

        assert breaker.state == CircuitState.CLOSED
        assert breaker.time_until_recovery() == 0.0


class TestCircuitBreakerRegistry:
    """Test the per-source registry."""

    def test_get_returns_same_breaker(self):
        registry = CircuitBreakerRegistry(failure_threshold=5)

        assert registry.get("toss") is registry.get("toss")
        assert registry.get("toss").failure_threshold == 5

    @pytest.mark.asyncio
    async def test_snapshot_and_reset_all(self):
        registry = CircuitBreakerRegistry(failure_threshold=1)
        await registry.get("toss").record_failure()
        registry.get("kakao")

        assert registry.snapshot() == {"toss": "open", "kakao": "closed"}

        registry.reset_all()

        assert registry.snapshot() == {"toss": "closed", "kakao": "closed"}
