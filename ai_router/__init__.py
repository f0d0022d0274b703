"""Multi-provider AI model router with budget-aware selection and fallback."""

from ai_router.core.exceptions import (
    AllProvidersExhaustedError,
    NoAffordableModelError,
    ProviderUnavailableError,
    RouterException,
)
from ai_router.services.routing import (
    CostPreference,
    Priority,
    Router,
    RoutingResponse,
    TaskRequest,
    TaskType,
)

__version__ = "0.1.0"

__all__ = [
    "AllProvidersExhaustedError",
    "CostPreference",
    "NoAffordableModelError",
    "Priority",
    "ProviderUnavailableError",
    "Router",
    "RouterException",
    "RoutingResponse",
    "TaskRequest",
    "TaskType",
]
