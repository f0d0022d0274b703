"""
Model Selector - Ranks affordable candidates for a task request

Selection is pure and synchronous. The caller supplies the available budget
(read under the ledger lock) so that the same catalog, request and budget
always produce the same model.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional

from ai_router.core.exceptions import ConfigurationError, NoAffordableModelError
from .base_router import CostPreference, Priority, QualityTier, SpeedTier, TaskRequest
from .catalog import ModelCatalog, ModelDescriptor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SelectionWeights:
    """Weights applied to the 0-100 component scores in balanced mode."""
    quality: float = 0.0
    speed: float = 0.0
    budget: float = 0.0
    cost: float = 0.0

    def __post_init__(self):
        if min(self.quality, self.speed, self.budget, self.cost) < 0:
            raise ConfigurationError("Selection weights must be non-negative")


DEFAULT_PRIORITY_WEIGHTS: Dict[Priority, SelectionWeights] = {
    Priority.CRITICAL: SelectionWeights(quality=0.6, speed=0.3, budget=0.1),
    Priority.HIGH: SelectionWeights(quality=0.4, speed=0.3, budget=0.3),
    Priority.MEDIUM: SelectionWeights(cost=0.4, quality=0.3, budget=0.3),
    Priority.LOW: SelectionWeights(cost=0.4, quality=0.3, budget=0.3),
}

DEFAULT_QUALITY_SCORES: Dict[QualityTier, float] = {
    QualityTier.GOOD: 60.0,
    QualityTier.EXCELLENT: 80.0,
    QualityTier.EXCEPTIONAL: 100.0,
}

DEFAULT_SPEED_SCORES: Dict[SpeedTier, float] = {
    SpeedTier.SLOW: 40.0,
    SpeedTier.MEDIUM: 70.0,
    SpeedTier.FAST: 100.0,
}

DEFAULT_COST_BASELINE_USD = 0.01


class ModelSelector:
    """
    Chooses exactly one model for a task request.

    Policies:
    - cost-optimized: cheapest affordable candidate
    - quality-first: highest quality affordable candidate
    - balanced: highest weighted score of quality, speed, budget impact and
      cost efficiency, weights depending on priority

    When nothing is affordable the designated free model is returned; with
    no free model at all, NoAffordableModelError is raised.
    """

    def __init__(
        self,
        catalog: ModelCatalog,
        weights: Optional[Mapping[Priority, SelectionWeights]] = None,
        cost_baseline_usd: float = DEFAULT_COST_BASELINE_USD,
        quality_scores: Optional[Mapping[QualityTier, float]] = None,
        speed_scores: Optional[Mapping[SpeedTier, float]] = None
    ):
        if cost_baseline_usd <= 0:
            raise ConfigurationError(
                "Cost baseline must be positive",
                details={"cost_baseline_usd": cost_baseline_usd}
            )

        self.catalog = catalog
        self.weights = dict(DEFAULT_PRIORITY_WEIGHTS)
        if weights:
            self.weights.update(weights)
        self.cost_baseline_usd = cost_baseline_usd
        self.quality_scores = dict(quality_scores or DEFAULT_QUALITY_SCORES)
        self.speed_scores = dict(speed_scores or DEFAULT_SPEED_SCORES)

    def select(self, request: TaskRequest, available: float) -> ModelDescriptor:
        """
        Select the model for ``request`` given ``available`` budget.

        Raises:
            NoAffordableModelError: If no candidate fits and no free model exists
        """
        tokens = request.token_budget
        candidates = self.candidates(request)
        affordable = [d for d in candidates if self.can_afford(d, tokens, available)]

        if not affordable:
            fallback = self.free_fallback(candidates, tokens)
            if fallback is None:
                raise NoAffordableModelError(request.task_type.value, available)
            logger.info(
                f"No affordable model for {request.task_type.value}, "
                f"using free tier {fallback.name}"
            )
            return fallback

        preference = request.cost_preference
        if preference == CostPreference.COST_OPTIMIZED:
            chosen = min(
                affordable,
                key=lambda d: (d.cost_per_thousand_tokens, -d.quality_tier.rank, d.name)
            )
        elif preference == CostPreference.QUALITY_FIRST:
            chosen = min(
                affordable,
                key=lambda d: (-d.quality_tier.rank, d.cost_per_thousand_tokens, d.name)
            )
        else:
            chosen = min(
                affordable,
                key=lambda d: (-round(self.score(d, request, available), 9), d.name)
            )

        logger.debug(
            f"Selected {chosen.name} for {request.task_type.value} "
            f"({preference.value}, {request.priority.value})"
        )
        return chosen

    def candidates(self, request: TaskRequest) -> List[ModelDescriptor]:
        """
        Models whose context window fits the request.

        Capability matches come first; when none of them fits, the
        general-purpose set is used instead.
        """
        tokens = request.token_budget
        tagged = [
            d for d in self.catalog.find_by_capability(request.task_type)
            if d.max_context_tokens >= tokens
        ]
        if tagged:
            return tagged
        return [d for d in self.catalog.general_purpose() if d.max_context_tokens >= tokens]

    def free_fallback(self, candidates: List[ModelDescriptor], tokens: int) -> Optional[ModelDescriptor]:
        """First free candidate, else the first free catalog model that fits ``tokens``."""
        for descriptor in candidates:
            if descriptor.is_free:
                return descriptor
        for descriptor in self.catalog.free_models():
            if descriptor.max_context_tokens >= tokens:
                return descriptor
        return None

    @staticmethod
    def can_afford(descriptor: ModelDescriptor, tokens: int, available: float) -> bool:
        if descriptor.is_free:
            return True
        return descriptor.estimated_cost(tokens) <= available

    def score(self, descriptor: ModelDescriptor, request: TaskRequest, available: float) -> float:
        """Weighted balanced-mode score of ``descriptor``."""
        weights = self.weights[request.priority]
        tokens = request.token_budget
        return (
            weights.quality * self.quality_score(descriptor)
            + weights.speed * self.speed_score(descriptor)
            + weights.budget * self.budget_score(descriptor, tokens, available)
            + weights.cost * self.cost_score(descriptor, tokens)
        )

    def quality_score(self, descriptor: ModelDescriptor) -> float:
        return self.quality_scores[descriptor.quality_tier]

    def speed_score(self, descriptor: ModelDescriptor) -> float:
        return self.speed_scores[descriptor.speed_tier]

    def budget_score(self, descriptor: ModelDescriptor, tokens: int, available: float) -> float:
        """Share of the available budget left after this request (0-100)."""
        if descriptor.is_free:
            return 100.0
        if available <= 0:
            return 0.0
        impact = descriptor.estimated_cost(tokens) / available
        return _clamp(100.0 * (1.0 - impact))

    def cost_score(self, descriptor: ModelDescriptor, tokens: int) -> float:
        """Cost efficiency against the baseline request cost (0-100)."""
        if descriptor.is_free:
            return 100.0
        cost = descriptor.estimated_cost(tokens)
        return _clamp(100.0 * (1.0 - cost / self.cost_baseline_usd))


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))
