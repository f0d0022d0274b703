"""
Unified Router - Public entry point for cost-aware model routing

The Router is constructed explicitly and owns its catalog, selector, ledger,
provider adapters and circuit breakers. Nothing is shared at module level,
so separate routers (and separate tests) never see each other's spend.
"""

import dataclasses
import logging
from typing import Any, Dict, Mapping, Optional

from ai_router.core.config import Settings, get_settings
from ai_router.core.exceptions import ConfigurationError
from ai_router.core.logging import setup_logging
from ai_router.services.circuit_breaker import CircuitBreaker
from .base_router import DEFAULT_MAX_TOKENS, Priority, ProviderType, RoutingResponse, TaskRequest
from .budget_ledger import BudgetLedger, BudgetSnapshot
from .catalog import ModelCatalog, default_catalog
from .dispatcher import Dispatcher
from .providers import BaseProvider, build_providers
from .selector import DEFAULT_COST_BASELINE_USD, ModelSelector, SelectionWeights

logger = logging.getLogger(__name__)

DEFAULT_MONTHLY_BUDGET_USD = 30.0


class Router:
    """
    Cost, quality and speed aware router over several LLM providers.

    Descriptors whose provider has no registered adapter are dropped from
    the catalog: a provider without credentials is permanently unavailable.
    """

    def __init__(
        self,
        providers: Mapping[ProviderType, BaseProvider],
        catalog: Optional[ModelCatalog] = None,
        ledger: Optional[BudgetLedger] = None,
        weights: Optional[Mapping[Priority, SelectionWeights]] = None,
        cost_baseline_usd: float = DEFAULT_COST_BASELINE_USD,
        circuit_breakers: Optional[Mapping[ProviderType, CircuitBreaker]] = None,
        total_budget: float = DEFAULT_MONTHLY_BUDGET_USD,
        default_max_tokens: int = DEFAULT_MAX_TOKENS
    ):
        """
        Initialize router.

        Args:
            providers: Adapter per available provider
            catalog: Model catalog (defaults to the stock catalog)
            ledger: Budget ledger (defaults to a new ledger of ``total_budget``)
            weights: Balanced-mode weights per priority, overriding the defaults
            cost_baseline_usd: Request cost that scores zero cost efficiency
            circuit_breakers: Optional breaker per provider
            total_budget: Monthly budget when no ledger is given
            default_max_tokens: Token budget for requests that set none
        """
        if not providers:
            raise ConfigurationError("At least one provider must be available")
        if default_max_tokens <= 0:
            raise ConfigurationError(
                "default_max_tokens must be positive",
                details={"default_max_tokens": default_max_tokens}
            )

        self.providers: Dict[ProviderType, BaseProvider] = dict(providers)
        self.catalog = (catalog or default_catalog()).restricted_to(self.providers)
        self.ledger = ledger or BudgetLedger(total_budget)
        self.selector = ModelSelector(self.catalog, weights=weights, cost_baseline_usd=cost_baseline_usd)
        self.circuit_breakers: Dict[ProviderType, CircuitBreaker] = dict(circuit_breakers or {})
        self.default_max_tokens = default_max_tokens

        self.dispatcher = Dispatcher(
            catalog=self.catalog,
            selector=self.selector,
            ledger=self.ledger,
            providers=self.providers,
            circuit_breakers=self.circuit_breakers
        )

        logger.info(
            f"Router initialized with {len(self.catalog)} models across "
            f"{', '.join(sorted(p.value for p in self.catalog.providers))} "
            f"(budget ${self.ledger.total_budget:.2f})"
        )

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        catalog: Optional[ModelCatalog] = None
    ) -> "Router":
        """Build a router with providers, ledger and breakers from settings."""
        settings = settings or get_settings()
        setup_logging("ai_router", level=settings.LOG_LEVEL.upper())
        providers = build_providers(settings)
        breakers = {
            provider_type: CircuitBreaker(
                provider_type.value,
                failure_threshold=settings.CIRCUIT_BREAKER_FAILURE_THRESHOLD,
                recovery_timeout=settings.CIRCUIT_BREAKER_RECOVERY_TIMEOUT
            )
            for provider_type in providers
        }
        return cls(
            providers=providers,
            catalog=catalog,
            cost_baseline_usd=settings.COST_BASELINE_USD,
            circuit_breakers=breakers,
            total_budget=settings.MONTHLY_BUDGET_USD,
            default_max_tokens=settings.DEFAULT_MAX_TOKENS
        )

    async def route_task(self, request: TaskRequest) -> RoutingResponse:
        """
        Route a task to the best affordable model.

        Returns:
            Response text, model used, cost and remaining budget

        Raises:
            NoAffordableModelError: If nothing, including the free tier, fits the budget
            AllProvidersExhaustedError: If every fallback attempt fails
        """
        if request.max_tokens is None:
            request = dataclasses.replace(request, max_tokens=self.default_max_tokens)

        logger.info(
            f"Routing {request.task_type.value} task",
            extra={
                "task_type": request.task_type.value,
                "priority": request.priority.value,
                "cost_preference": request.cost_preference.value,
                "max_tokens": request.max_tokens,
                "budget_available": self.ledger.available
            }
        )

        response = await self.dispatcher.dispatch(request)

        logger.info(
            f"Routed {request.task_type.value} to {response.model_used}",
            extra={
                "model": response.model_used,
                "provider": response.provider.value,
                "cost_usd": response.cost,
                "budget_remaining": response.budget_remaining,
                "attempts": len(response.attempts),
                "latency_ms": response.latency_ms
            }
        )
        return response

    def get_budget_status(self) -> BudgetSnapshot:
        """Read-only snapshot of the budget ledger."""
        return self.ledger.snapshot()

    async def reset_budget(self) -> None:
        """Start a new billing period immediately."""
        await self.ledger.reset()

    def get_model_recommendations(self) -> Dict[str, str]:
        """Cheapest model per task type."""
        return {
            task_type.value: name
            for task_type, name in sorted(self.catalog.recommendations().items(), key=lambda x: x[0].value)
        }

    def get_provider_stats(self) -> Dict[str, Dict[str, Any]]:
        """Per-provider request statistics and breaker state."""
        stats = {}
        for provider_type, provider in self.providers.items():
            provider_stats = provider.get_stats()
            breaker = self.circuit_breakers.get(provider_type)
            if breaker is not None:
                provider_stats["circuit_breaker"] = breaker.get_status()
            stats[provider_type.value] = provider_stats
        return stats

    def reset_provider_stats(self) -> None:
        """Zero the request statistics of every provider."""
        for provider in self.providers.values():
            provider.reset_stats()

    async def health_check(self) -> Dict[str, Dict[str, Any]]:
        """
        Probe every provider with its cheapest catalog model.

        Probes are not charged to the ledger.
        """
        health_status = {}
        for provider_type, provider in self.providers.items():
            models = sorted(
                (d for d in self.catalog if d.provider == provider_type),
                key=lambda d: (d.cost_per_thousand_tokens, d.name)
            )
            breaker = self.circuit_breakers.get(provider_type)
            status: Dict[str, Any] = {
                "circuit_breaker": breaker.state.value if breaker else None,
            }
            if not models:
                status["status"] = "unused"
            else:
                healthy = await provider.health_check(models[0].upstream_model)
                status["status"] = "healthy" if healthy else "unhealthy"
                status["model"] = models[0].name
            health_status[provider_type.value] = status
        return health_status
