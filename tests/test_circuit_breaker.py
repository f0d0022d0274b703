"""Unit tests for the provider circuit breaker."""

import asyncio
from datetime import datetime, timedelta

import pytest

from ai_router.core.exceptions import CircuitBreakerOpenError
from ai_router.services.circuit_breaker import CircuitBreaker, CircuitState


@pytest.fixture
def circuit_breaker():
    """Create CircuitBreaker instance with test configuration."""
    return CircuitBreaker("openai", failure_threshold=3, recovery_timeout=60)


async def successful_call():
    return "success"


async def failing_call():
    raise ConnectionError("Service unavailable")


@pytest.mark.unit
class TestCircuitBreaker:
    """Test suite for CircuitBreaker pattern."""

    @pytest.mark.asyncio
    async def test_initial_state_closed(self, circuit_breaker):
        assert circuit_breaker.state == CircuitState.CLOSED
        assert circuit_breaker.failure_count == 0
        assert not circuit_breaker.is_open()

    @pytest.mark.asyncio
    async def test_successful_call_in_closed_state(self, circuit_breaker):
        result = await circuit_breaker.call(successful_call)

        assert result == "success"
        assert circuit_breaker.state == CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_failure_increments_count(self, circuit_breaker):
        with pytest.raises(ConnectionError):
            await circuit_breaker.call(failing_call)

        assert circuit_breaker.failure_count == 1
        assert circuit_breaker.state == CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_opens_after_threshold(self, circuit_breaker):
        for _ in range(3):
            with pytest.raises(ConnectionError):
                await circuit_breaker.call(failing_call)

        assert circuit_breaker.state == CircuitState.OPEN
        assert circuit_breaker.is_open()

    @pytest.mark.asyncio
    async def test_rejects_calls_when_open(self, circuit_breaker):
        for _ in range(3):
            with pytest.raises(ConnectionError):
                await circuit_breaker.call(failing_call)

        with pytest.raises(CircuitBreakerOpenError) as exc_info:
            await circuit_breaker.call(successful_call)

        assert exc_info.value.provider == "openai"
        assert exc_info.value.details["retry_after_seconds"] > 0

    @pytest.mark.asyncio
    async def test_success_resets_failure_count(self, circuit_breaker):
        with pytest.raises(ConnectionError):
            await circuit_breaker.call(failing_call)

        await circuit_breaker.call(successful_call)

        assert circuit_breaker.failure_count == 0

    @pytest.mark.asyncio
    async def test_half_open_after_recovery_timeout_then_closes(self, circuit_breaker):
        for _ in range(3):
            with pytest.raises(ConnectionError):
                await circuit_breaker.call(failing_call)

        # Pretend the last failure happened long ago
        circuit_breaker._last_failure_time = datetime.now() - timedelta(seconds=61)

        result = await circuit_breaker.call(successful_call)

        assert result == "success"
        assert circuit_breaker.state == CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_half_open_failure_reopens(self, circuit_breaker):
        for _ in range(3):
            with pytest.raises(ConnectionError):
                await circuit_breaker.call(failing_call)
        circuit_breaker._last_failure_time = datetime.now() - timedelta(seconds=61)

        with pytest.raises(ConnectionError):
            await circuit_breaker.call(failing_call)

        assert circuit_breaker.state == CircuitState.OPEN

    @pytest.mark.asyncio
    async def test_cancellation_is_not_a_failure(self, circuit_breaker):
        async def slow_call():
            await asyncio.sleep(10)

        task = asyncio.create_task(circuit_breaker.call(slow_call))
        await asyncio.sleep(0)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        assert circuit_breaker.failure_count == 0

    @pytest.mark.asyncio
    async def test_half_open_admits_single_trial_call(self, circuit_breaker):
        for _ in range(3):
            with pytest.raises(ConnectionError):
                await circuit_breaker.call(failing_call)
        circuit_breaker._last_failure_time = datetime.now() - timedelta(seconds=61)

        release = asyncio.Event()

        async def trial_call():
            await release.wait()
            return "recovered"

        trial = asyncio.create_task(circuit_breaker.call(trial_call))
        await asyncio.sleep(0)
        assert circuit_breaker.state == CircuitState.HALF_OPEN

        with pytest.raises(CircuitBreakerOpenError):
            await circuit_breaker.call(successful_call)

        release.set()
        assert await trial == "recovered"
        assert circuit_breaker.state == CircuitState.CLOSED
        assert await circuit_breaker.call(successful_call) == "success"

    @pytest.mark.asyncio
    async def test_cancelled_trial_frees_half_open_slot(self, circuit_breaker):
        for _ in range(3):
            with pytest.raises(ConnectionError):
                await circuit_breaker.call(failing_call)
        circuit_breaker._last_failure_time = datetime.now() - timedelta(seconds=61)

        async def slow_call():
            await asyncio.sleep(10)

        trial = asyncio.create_task(circuit_breaker.call(slow_call))
        await asyncio.sleep(0)
        trial.cancel()
        with pytest.raises(asyncio.CancelledError):
            await trial

        assert await circuit_breaker.call(successful_call) == "success"
        assert circuit_breaker.state == CircuitState.CLOSED

    def test_get_status(self, circuit_breaker):
        status = circuit_breaker.get_status()

        assert status["name"] == "openai"
        assert status["state"] == "closed"
        assert status["failure_count"] == 0
        assert status["last_failure"] is None
        assert status["time_until_retry"] == 0.0
