"""Model catalog - static registry of model descriptors and capability queries."""

import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, Iterator, List, Optional

from ai_router.core.exceptions import ConfigurationError
from .base_router import ProviderType, QualityTier, SpeedTier, TaskType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModelDescriptor:
    """Static metadata for one callable model/provider combination."""

    name: str
    provider: ProviderType
    cost_per_thousand_tokens: float   # USD; 0 for free/embedded options
    capability_tags: FrozenSet[TaskType]
    quality_tier: QualityTier
    speed_tier: SpeedTier
    max_context_tokens: int
    provider_model: Optional[str] = field(default=None, compare=False)

    def __post_init__(self):
        if not self.name:
            raise ConfigurationError("Model descriptor must have a name")
        if self.cost_per_thousand_tokens < 0:
            raise ConfigurationError(
                f"Model {self.name} has negative cost",
                details={"cost_per_thousand_tokens": self.cost_per_thousand_tokens}
            )
        if self.max_context_tokens <= 0:
            raise ConfigurationError(
                f"Model {self.name} must have a positive context window",
                details={"max_context_tokens": self.max_context_tokens}
            )
        # Accept any iterable of tags
        object.__setattr__(self, "capability_tags", frozenset(self.capability_tags))

    @property
    def is_free(self) -> bool:
        return self.cost_per_thousand_tokens == 0

    @property
    def upstream_model(self) -> str:
        """Model id sent to the provider."""
        return self.provider_model or self.name

    def estimated_cost(self, max_tokens: int) -> float:
        """Estimated USD cost of a request of ``max_tokens`` tokens."""
        if self.is_free:
            return 0.0
        return (max_tokens / 1000) * self.cost_per_thousand_tokens

    def supports(self, task_type: TaskType) -> bool:
        return task_type in self.capability_tags


class ModelCatalog:
    """
    Read-only registry of model descriptors.

    Every query returns descriptors in name order so that callers iterating
    the results get the same sequence on every run.
    """

    def __init__(self, descriptors: Iterable[ModelDescriptor]):
        by_name: Dict[str, ModelDescriptor] = {}
        for descriptor in descriptors:
            if descriptor.name in by_name:
                raise ConfigurationError(
                    f"Duplicate model descriptor: {descriptor.name}",
                    details={"name": descriptor.name}
                )
            by_name[descriptor.name] = descriptor

        if not by_name:
            raise ConfigurationError("Model catalog must contain at least one descriptor")

        self._descriptors: Dict[str, ModelDescriptor] = dict(sorted(by_name.items()))

    def __len__(self) -> int:
        return len(self._descriptors)

    def __iter__(self) -> Iterator[ModelDescriptor]:
        return iter(self._descriptors.values())

    def __contains__(self, name: object) -> bool:
        return name in self._descriptors

    def get(self, name: str) -> Optional[ModelDescriptor]:
        return self._descriptors.get(name)

    @property
    def providers(self) -> FrozenSet[ProviderType]:
        """Distinct providers present in the catalog."""
        return frozenset(d.provider for d in self)

    def find_by_capability(self, task_type: TaskType) -> List[ModelDescriptor]:
        """All descriptors tagged with ``task_type``."""
        return [d for d in self if d.supports(task_type)]

    def general_purpose(self) -> List[ModelDescriptor]:
        """Descriptors usable for any task: good quality or fast speed."""
        return [
            d for d in self
            if d.quality_tier == QualityTier.GOOD or d.speed_tier == SpeedTier.FAST
        ]

    def candidates_for(self, task_type: TaskType) -> List[ModelDescriptor]:
        """Capability matches, or the general-purpose set when there are none."""
        candidates = self.find_by_capability(task_type)
        if not candidates:
            logger.debug(f"No models tagged for {task_type.value}, using general-purpose set")
            candidates = self.general_purpose()
        return candidates

    def free_models(self) -> List[ModelDescriptor]:
        return [d for d in self if d.is_free]

    def cheapest_paid(self) -> List[ModelDescriptor]:
        """Paid descriptors ordered by cost, then name."""
        paid = [d for d in self if not d.is_free]
        return sorted(paid, key=lambda d: (d.cost_per_thousand_tokens, d.name))

    def restricted_to(self, providers: Iterable[ProviderType]) -> "ModelCatalog":
        """
        New catalog holding only descriptors served by ``providers``.

        Raises:
            ConfigurationError: If no descriptor survives
        """
        allowed = set(providers)
        kept = [d for d in self if d.provider in allowed]
        dropped = sorted(d.name for d in self if d.provider not in allowed)
        if dropped:
            logger.info(f"Providers unavailable, dropping models: {', '.join(dropped)}")
        return ModelCatalog(kept)

    def recommendations(self) -> Dict[TaskType, str]:
        """Cheapest model name for every task type that has a tagged model."""
        recommended: Dict[TaskType, ModelDescriptor] = {}
        for descriptor in self:
            for task_type in descriptor.capability_tags:
                current = recommended.get(task_type)
                if current is None or descriptor.cost_per_thousand_tokens < current.cost_per_thousand_tokens:
                    recommended[task_type] = descriptor
        return {task_type: d.name for task_type, d in recommended.items()}


def default_catalog() -> ModelCatalog:
    """The stock catalog: Anthropic, OpenAI and Gemini models plus the free embedded tier."""
    return ModelCatalog([
        # === ANTHROPIC ===
        ModelDescriptor(
            name="claude-3-7-sonnet-20250219",
            provider=ProviderType.ANTHROPIC,
            cost_per_thousand_tokens=0.003,
            capability_tags=frozenset({TaskType.ARCHITECTURE, TaskType.DEBUGGING}),
            quality_tier=QualityTier.EXCEPTIONAL,
            speed_tier=SpeedTier.MEDIUM,
            max_context_tokens=200000,
        ),
        ModelDescriptor(
            name="claude-3-haiku-20240307",
            provider=ProviderType.ANTHROPIC,
            cost_per_thousand_tokens=0.00025,
            capability_tags=frozenset({
                TaskType.QUICK_ANALYSIS, TaskType.DEBUGGING, TaskType.CHAT_CONVERSATION,
            }),
            quality_tier=QualityTier.GOOD,
            speed_tier=SpeedTier.FAST,
            max_context_tokens=200000,
        ),
        # === OPENAI ===
        ModelDescriptor(
            name="gpt-4o",
            provider=ProviderType.OPENAI,
            cost_per_thousand_tokens=0.0025,
            capability_tags=frozenset({
                TaskType.MULTIMODAL, TaskType.CREATIVE_WRITING, TaskType.CODE_GENERATION,
            }),
            quality_tier=QualityTier.EXCEPTIONAL,
            speed_tier=SpeedTier.MEDIUM,
            max_context_tokens=128000,
        ),
        ModelDescriptor(
            name="gpt-4o-mini",
            provider=ProviderType.OPENAI,
            cost_per_thousand_tokens=0.00015,
            capability_tags=frozenset({
                TaskType.QUICK_ANALYSIS, TaskType.CHAT_CONVERSATION, TaskType.SECURITY_SCAN,
            }),
            quality_tier=QualityTier.GOOD,
            speed_tier=SpeedTier.FAST,
            max_context_tokens=128000,
        ),
        ModelDescriptor(
            name="gpt-3.5-turbo",
            provider=ProviderType.OPENAI,
            cost_per_thousand_tokens=0.0005,
            capability_tags=frozenset({
                TaskType.CHAT_CONVERSATION, TaskType.CREATIVE_WRITING, TaskType.PERFORMANCE,
            }),
            quality_tier=QualityTier.GOOD,
            speed_tier=SpeedTier.FAST,
            max_context_tokens=16385,
        ),
        # === GEMINI ===
        ModelDescriptor(
            name="gemini-1.5-pro",
            provider=ProviderType.GEMINI,
            cost_per_thousand_tokens=0.00125,
            capability_tags=frozenset({
                TaskType.DATA_ANALYSIS, TaskType.ARCHITECTURE, TaskType.MULTIMODAL,
            }),
            quality_tier=QualityTier.EXCELLENT,
            speed_tier=SpeedTier.MEDIUM,
            max_context_tokens=2000000,
        ),
        ModelDescriptor(
            name="gemini-1.5-flash",
            provider=ProviderType.GEMINI,
            cost_per_thousand_tokens=0.000075,
            capability_tags=frozenset({
                TaskType.QUICK_ANALYSIS, TaskType.SECURITY_SCAN, TaskType.PERFORMANCE,
            }),
            quality_tier=QualityTier.GOOD,
            speed_tier=SpeedTier.FAST,
            max_context_tokens=1000000,
        ),
        # === EMBEDDED FREE TIER ===
        ModelDescriptor(
            name="embedded-llama",
            provider=ProviderType.OLLAMA,
            cost_per_thousand_tokens=0.0,
            capability_tags=frozenset({
                TaskType.QUICK_ANALYSIS, TaskType.DEBUGGING, TaskType.CHAT_CONVERSATION,
            }),
            quality_tier=QualityTier.GOOD,
            speed_tier=SpeedTier.FAST,
            max_context_tokens=100000,
            provider_model="llama3.1:8b",
        ),
    ])
