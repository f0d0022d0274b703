"""
Pytest configuration and fixtures for the router test suite.

Provides an in-process fake provider, a small deterministic catalog and
router factories so no test touches a real provider API.
"""

import asyncio
from typing import Callable, Dict, Iterable, List, Optional

import pytest

from ai_router.services.routing.base_router import ProviderType, QualityTier, SpeedTier, TaskType
from ai_router.services.routing.budget_ledger import BudgetLedger
from ai_router.services.routing.catalog import ModelCatalog, ModelDescriptor
from ai_router.services.routing.providers.base_provider import BaseProvider
from ai_router.services.routing.unified_router import Router


class FakeProvider(BaseProvider):
    """Provider double that records calls and can fail or stall on demand."""

    def __init__(
        self,
        provider_type: ProviderType,
        response: str = "ok",
        fail: bool = False,
        error: Optional[Exception] = None,
        delay: float = 0.0,
        timeout_seconds: float = 30.0
    ):
        super().__init__(timeout_seconds)
        self.provider_type = provider_type
        self.response = response
        self.fail = fail
        self.error = error
        self.delay = delay
        self.calls: List[str] = []

    async def _generate(self, model: str, prompt: str, max_tokens: int) -> str:
        self.calls.append(model)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise self.error or ConnectionError(f"{self.provider_type.value} unreachable")
        return f"{self.response} from {model}"


def make_descriptor(
    name: str,
    provider: ProviderType,
    cost: float,
    tags: Iterable[TaskType],
    quality: QualityTier = QualityTier.GOOD,
    speed: SpeedTier = SpeedTier.FAST,
    context: int = 100000
) -> ModelDescriptor:
    return ModelDescriptor(
        name=name,
        provider=provider,
        cost_per_thousand_tokens=cost,
        capability_tags=frozenset(tags),
        quality_tier=quality,
        speed_tier=speed,
        max_context_tokens=context,
    )


@pytest.fixture
def free_model() -> ModelDescriptor:
    return make_descriptor(
        "free-local", ProviderType.OLLAMA, 0.0,
        [TaskType.QUICK_ANALYSIS, TaskType.CHAT_CONVERSATION],
    )


@pytest.fixture
def small_catalog(free_model) -> ModelCatalog:
    """Four models, one per provider, with distinct cost/quality/speed."""
    return ModelCatalog([
        free_model,
        make_descriptor(
            "cheap-fast", ProviderType.OPENAI, 0.0002,
            [TaskType.QUICK_ANALYSIS, TaskType.CODE_GENERATION],
            context=128000,
        ),
        make_descriptor(
            "mid-excellent", ProviderType.GEMINI, 0.00125,
            [TaskType.QUICK_ANALYSIS, TaskType.DATA_ANALYSIS, TaskType.CODE_GENERATION],
            quality=QualityTier.EXCELLENT, speed=SpeedTier.MEDIUM, context=1000000,
        ),
        make_descriptor(
            "premium", ProviderType.ANTHROPIC, 0.003,
            [TaskType.ARCHITECTURE, TaskType.CODE_GENERATION],
            quality=QualityTier.EXCEPTIONAL, speed=SpeedTier.MEDIUM, context=200000,
        ),
    ])


@pytest.fixture
def fake_providers() -> Dict[ProviderType, FakeProvider]:
    return {provider_type: FakeProvider(provider_type) for provider_type in ProviderType}


@pytest.fixture
def make_router(small_catalog, fake_providers) -> Callable[..., Router]:
    """Factory building a router over the small catalog and fake providers."""
    def _make(
        total_budget: float = 30.0,
        catalog: Optional[ModelCatalog] = None,
        providers: Optional[Dict[ProviderType, BaseProvider]] = None,
        **kwargs
    ) -> Router:
        return Router(
            providers=providers or fake_providers,
            catalog=catalog or small_catalog,
            ledger=BudgetLedger(total_budget),
            **kwargs
        )

    return _make


@pytest.fixture
def fake_provider_class():
    return FakeProvider


@pytest.fixture
def descriptor_factory():
    return make_descriptor
