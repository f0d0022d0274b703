"""
Base Router - Core routing types shared by the catalog, selector and dispatcher

This module defines the closed enums, the per-call task request and the
routing response returned to callers.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from ai_router.core.exceptions import InvalidTaskRequestError

DEFAULT_MAX_TOKENS = 1000


class TaskType(str, Enum):
    """Task affinities a model can be tagged with."""
    QUICK_ANALYSIS = "quick-analysis"        # Simple review, basic questions
    CODE_GENERATION = "code-generation"      # Writing new code, complex logic
    DEBUGGING = "debugging"                  # Error detection and fixing
    ARCHITECTURE = "architecture"            # System design, large refactoring
    CREATIVE_WRITING = "creative-writing"    # Content creation, documentation
    DATA_ANALYSIS = "data-analysis"          # Processing large datasets
    SECURITY_SCAN = "security-scan"          # Vulnerability detection
    PERFORMANCE = "performance"              # Optimization recommendations
    MULTIMODAL = "multimodal"                # Image, audio or mixed media
    CHAT_CONVERSATION = "chat-conversation"  # Interactive conversations


class ProviderType(str, Enum):
    """Available LLM providers."""
    ANTHROPIC = "anthropic"
    OPENAI = "openai"
    GEMINI = "gemini"
    OLLAMA = "ollama"  # Embedded free tier


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class CostPreference(str, Enum):
    COST_OPTIMIZED = "cost-optimized"
    BALANCED = "balanced"
    QUALITY_FIRST = "quality-first"


class QualityTier(str, Enum):
    """Ordinal quality tier; compare with ``rank``."""
    GOOD = "good"
    EXCELLENT = "excellent"
    EXCEPTIONAL = "exceptional"

    @property
    def rank(self) -> int:
        return _QUALITY_RANK[self]


class SpeedTier(str, Enum):
    """Ordinal speed tier; compare with ``rank``."""
    SLOW = "slow"
    MEDIUM = "medium"
    FAST = "fast"

    @property
    def rank(self) -> int:
        return _SPEED_RANK[self]


_QUALITY_RANK = {QualityTier.GOOD: 1, QualityTier.EXCELLENT: 2, QualityTier.EXCEPTIONAL: 3}
_SPEED_RANK = {SpeedTier.SLOW: 1, SpeedTier.MEDIUM: 2, SpeedTier.FAST: 3}


class DispatchState(str, Enum):
    """States of a single dispatch call."""
    SELECTING = "selecting"
    INVOKING = "invoking"
    FALLBACK_INVOKING = "fallback_invoking"
    SUCCESS = "success"
    FAILED = "failed"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class TaskRequest:
    """Request for LLM routing. Constructed and discarded per call."""
    task_type: TaskType
    prompt: str
    max_tokens: Optional[int] = None
    priority: Priority = Priority.MEDIUM
    cost_preference: CostPreference = CostPreference.BALANCED

    def __post_init__(self):
        # Accept enum values given as plain strings
        for attr, enum_type in (
            ("task_type", TaskType),
            ("priority", Priority),
            ("cost_preference", CostPreference),
        ):
            value = getattr(self, attr)
            try:
                object.__setattr__(self, attr, enum_type(value))
            except ValueError as e:
                raise InvalidTaskRequestError(
                    f"Unknown {attr} {value!r}",
                    details={attr: repr(value), "allowed": [m.value for m in enum_type]}
                ) from e

        if not self.prompt or not self.prompt.strip():
            raise InvalidTaskRequestError(
                "Task request must have a non-empty prompt",
                details={"task_type": self.task_type.value}
            )
        if self.max_tokens is not None and self.max_tokens <= 0:
            raise InvalidTaskRequestError(
                f"max_tokens must be positive, got {self.max_tokens}",
                details={"max_tokens": self.max_tokens}
            )

    @property
    def token_budget(self) -> int:
        """Requested tokens, falling back to the default."""
        return self.max_tokens or DEFAULT_MAX_TOKENS


@dataclass
class RoutingResponse:
    """Response from a successful dispatch."""
    response_text: str
    model_used: str
    provider: ProviderType
    cost: float
    budget_remaining: float
    attempts: List[str] = field(default_factory=list)
    fallback_used: bool = False
    latency_ms: int = 0
