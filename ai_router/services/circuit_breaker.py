"""Circuit breaker pattern for provider calls.

Implements a three-state circuit breaker (CLOSED, OPEN, HALF_OPEN) so that a
provider failing repeatedly is skipped quickly instead of being called on
every dispatch.
"""

import asyncio
import logging
from datetime import datetime
from enum import Enum
from typing import Awaitable, Callable, Optional, TypeVar

from ai_router.core.exceptions import CircuitBreakerOpenError

logger = logging.getLogger(__name__)

T = TypeVar('T')


class CircuitState(str, Enum):
    """Circuit breaker states."""
    CLOSED = "closed"        # Normal operation, requests pass through
    OPEN = "open"            # Failing, requests blocked immediately
    HALF_OPEN = "half_open"  # Testing recovery


class CircuitBreaker:
    """
    Circuit breaker guarding one provider.

    State transitions:
    - CLOSED -> OPEN: After failure_threshold consecutive failures
    - OPEN -> HALF_OPEN: After recovery_timeout seconds
    - HALF_OPEN -> CLOSED: After success_threshold consecutive successes
    - HALF_OPEN -> OPEN: On failed request

    While HALF_OPEN a single trial request is admitted; concurrent calls are
    rejected until it finishes.
    """

    def __init__(
        self,
        name: str,
        failure_threshold: int = 5,
        recovery_timeout: int = 60,
        success_threshold: int = 1
    ):
        """
        Initialize circuit breaker.

        Args:
            name: Identifier for this circuit breaker (the provider name)
            failure_threshold: Number of consecutive failures before opening
            recovery_timeout: Seconds to wait before attempting recovery
            success_threshold: Consecutive successes needed to close from half-open
        """
        self.name = name
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.success_threshold = success_threshold

        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._success_count = 0
        self._last_failure_time: Optional[datetime] = None
        self._trial_in_flight = False
        self._last_state_change: datetime = datetime.now()

        self._lock = asyncio.Lock()

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def failure_count(self) -> int:
        return self._failure_count

    def is_open(self) -> bool:
        return self._state == CircuitState.OPEN and not self._should_attempt_reset()

    async def call(self, func: Callable[..., Awaitable[T]], *args, **kwargs) -> T:
        """
        Execute an async function with circuit breaker protection.

        Raises:
            CircuitBreakerOpenError: If circuit is OPEN
            Exception: Original exception from func if execution fails
        """
        async with self._lock:
            if self._state == CircuitState.OPEN:
                if self._should_attempt_reset():
                    self._transition_to_half_open()
                else:
                    raise CircuitBreakerOpenError(self.name, retry_after=self._time_until_retry())

            trial = self._state == CircuitState.HALF_OPEN
            if trial:
                if self._trial_in_flight:
                    raise CircuitBreakerOpenError(self.name, retry_after=0.0)
                self._trial_in_flight = True

        # Execute outside the lock to allow concurrent requests
        try:
            result = await func(*args, **kwargs)
        except asyncio.CancelledError:
            if trial:
                self._trial_in_flight = False
            raise
        except Exception as e:
            await self._on_failure(e, trial)
            raise

        await self._on_success(trial)
        return result

    async def _on_success(self, trial: bool = False):
        async with self._lock:
            if trial:
                self._trial_in_flight = False
            self._failure_count = 0

            if self._state == CircuitState.HALF_OPEN:
                self._success_count += 1
                if self._success_count >= self.success_threshold:
                    self._transition_to_closed()

    async def _on_failure(self, exception: Exception, trial: bool = False):
        async with self._lock:
            if trial:
                self._trial_in_flight = False
            self._failure_count += 1
            self._last_failure_time = datetime.now()
            self._success_count = 0

            logger.warning(
                f"Circuit breaker '{self.name}': Failure #{self._failure_count} "
                f"in {self._state.value} state - {type(exception).__name__}: {exception}"
            )

            if self._state == CircuitState.HALF_OPEN:
                # Immediately reopen on failure during recovery
                self._transition_to_open()
            elif self._state == CircuitState.CLOSED:
                if self._failure_count >= self.failure_threshold:
                    self._transition_to_open()

    def _should_attempt_reset(self) -> bool:
        if not self._last_failure_time:
            return True
        elapsed = (datetime.now() - self._last_failure_time).total_seconds()
        return elapsed >= self.recovery_timeout

    def _time_until_retry(self) -> float:
        if not self._last_failure_time:
            return 0.0
        elapsed = (datetime.now() - self._last_failure_time).total_seconds()
        return max(0.0, self.recovery_timeout - elapsed)

    def _transition_to_open(self):
        self._state = CircuitState.OPEN
        self._last_state_change = datetime.now()
        logger.error(
            f"Circuit breaker '{self.name}': OPEN "
            f"(failures={self._failure_count}, timeout={self.recovery_timeout}s)"
        )

    def _transition_to_half_open(self):
        self._state = CircuitState.HALF_OPEN
        self._last_state_change = datetime.now()
        self._success_count = 0
        self._trial_in_flight = False
        logger.info(f"Circuit breaker '{self.name}': HALF_OPEN (testing recovery)")

    def _transition_to_closed(self):
        self._state = CircuitState.CLOSED
        self._last_state_change = datetime.now()
        self._failure_count = 0
        self._success_count = 0
        logger.info(f"Circuit breaker '{self.name}': CLOSED (recovered)")

    def get_status(self) -> dict:
        """Current circuit breaker status for monitoring."""
        return {
            "name": self.name,
            "state": self._state.value,
            "failure_count": self._failure_count,
            "last_failure": self._last_failure_time.isoformat() if self._last_failure_time else None,
            "last_state_change": self._last_state_change.isoformat(),
            "time_until_retry": self._time_until_retry() if self._state == CircuitState.OPEN else 0.0
        }
