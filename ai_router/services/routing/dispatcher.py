"""
Dispatcher - Provider invocation, bounded fallback and budget charging

State machine for one dispatch call:

    SELECTING -> INVOKING -> SUCCESS
                          -> FAILED -> FALLBACK_INVOKING -> SUCCESS
                                                         -> EXHAUSTED

Selection and reservation happen under the ledger lock. The provider call
runs outside it. A successful call commits its reservation; a failed one
releases it before the next fallback step is reserved.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Dict, List, Mapping, Optional

from ai_router.core.exceptions import AllProvidersExhaustedError, ProviderUnavailableError
from ai_router.core.metrics import record_attempt
from ai_router.services.circuit_breaker import CircuitBreaker
from .base_router import DispatchState, ProviderType, RoutingResponse, TaskRequest
from .budget_ledger import BudgetLedger, Reservation
from .catalog import ModelCatalog, ModelDescriptor
from .providers.base_provider import BaseProvider
from .selector import ModelSelector

logger = logging.getLogger(__name__)

FallbackStep = Callable[[int, List[str]], Awaitable[Optional[Reservation]]]


class Dispatcher:
    """
    Invokes the selected model and runs the fallback chain on failure.

    Fallback order after a failed attempt:
    1. The first free model not yet attempted
    2. The cheapest paid model not yet attempted that is affordable now

    A model is never attempted twice in one dispatch, and the number of
    attempts never exceeds the number of distinct providers plus one.
    """

    def __init__(
        self,
        catalog: ModelCatalog,
        selector: ModelSelector,
        ledger: BudgetLedger,
        providers: Mapping[ProviderType, BaseProvider],
        circuit_breakers: Optional[Mapping[ProviderType, CircuitBreaker]] = None
    ):
        self.catalog = catalog
        self.selector = selector
        self.ledger = ledger
        self.providers: Dict[ProviderType, BaseProvider] = dict(providers)
        self.circuit_breakers: Dict[ProviderType, CircuitBreaker] = dict(circuit_breakers or {})

    @property
    def max_attempts(self) -> int:
        return len(self.catalog.providers) + 1

    async def dispatch(self, request: TaskRequest) -> RoutingResponse:
        """
        Dispatch ``request`` to a provider.

        Raises:
            NoAffordableModelError: If selection finds nothing affordable and no free model
            AllProvidersExhaustedError: If every attempt in the fallback chain fails
        """
        tokens = request.token_budget
        attempted: List[str] = []
        last_error: Optional[BaseException] = None
        start_time = time.monotonic()

        self._log_state(DispatchState.SELECTING, request)
        reservation = await self.ledger.reserve(
            lambda available: self.selector.select(request, available),
            tokens
        )
        fallback_steps = iter((self._reserve_free_fallback, self._reserve_cheapest_paid))
        state = DispatchState.INVOKING

        while reservation is not None:
            descriptor = reservation.descriptor
            attempted.append(descriptor.name)
            self._log_state(state, request, descriptor)

            try:
                text = await self._invoke(descriptor, request.prompt, tokens)
            except asyncio.CancelledError:
                self.ledger.release_nowait(reservation)
                raise
            except Exception as e:
                await self.ledger.release(reservation)
                record_attempt(descriptor.provider.value, success=False)
                last_error = e
                self._log_state(DispatchState.FAILED, request, descriptor, error=e)
            else:
                remaining = await self.ledger.commit(reservation)
                record_attempt(descriptor.provider.value, success=True)
                self._log_state(DispatchState.SUCCESS, request, descriptor)
                return RoutingResponse(
                    response_text=text,
                    model_used=descriptor.name,
                    provider=descriptor.provider,
                    cost=reservation.amount,
                    budget_remaining=remaining,
                    attempts=list(attempted),
                    fallback_used=len(attempted) > 1,
                    latency_ms=int((time.monotonic() - start_time) * 1000)
                )

            if len(attempted) >= self.max_attempts:
                break

            state = DispatchState.FALLBACK_INVOKING
            reservation = None
            for step in fallback_steps:
                reservation = await step(tokens, attempted)
                if reservation is not None:
                    break

        self._log_state(DispatchState.EXHAUSTED, request, error=last_error)
        raise AllProvidersExhaustedError(attempted, last_error) from last_error

    async def _invoke(self, descriptor: ModelDescriptor, prompt: str, max_tokens: int) -> str:
        provider = self.providers.get(descriptor.provider)
        if provider is None:
            raise ProviderUnavailableError(
                descriptor.provider.value,
                message=f"No adapter registered for {descriptor.provider.value}",
                details={"model": descriptor.name}
            )

        breaker = self.circuit_breakers.get(descriptor.provider)
        if breaker is not None:
            return await breaker.call(provider.invoke, descriptor.upstream_model, prompt, max_tokens)
        return await provider.invoke(descriptor.upstream_model, prompt, max_tokens)

    async def _reserve_free_fallback(self, tokens: int, attempted: List[str]) -> Optional[Reservation]:
        def choose(available: float) -> Optional[ModelDescriptor]:
            for descriptor in self.catalog.free_models():
                if descriptor.name not in attempted and descriptor.max_context_tokens >= tokens:
                    return descriptor
            return None

        return await self.ledger.reserve(choose, tokens)

    async def _reserve_cheapest_paid(self, tokens: int, attempted: List[str]) -> Optional[Reservation]:
        def choose(available: float) -> Optional[ModelDescriptor]:
            for descriptor in self.catalog.cheapest_paid():
                if descriptor.name in attempted or descriptor.max_context_tokens < tokens:
                    continue
                if descriptor.estimated_cost(tokens) <= available:
                    return descriptor
            return None

        return await self.ledger.reserve(choose, tokens)

    def _log_state(
        self,
        state: DispatchState,
        request: TaskRequest,
        descriptor: Optional[ModelDescriptor] = None,
        error: Optional[BaseException] = None
    ) -> None:
        extra = {
            "dispatch_state": state.value,
            "task_type": request.task_type.value,
            "model": descriptor.name if descriptor else None,
        }
        if error is not None:
            logger.warning(f"Dispatch {state.value}: {type(error).__name__}: {error}", extra=extra)
        else:
            logger.debug(f"Dispatch {state.value}", extra=extra)
