"""
Routing Module

Cost, quality and speed aware routing of tasks across LLM providers.

Architecture:
- ModelCatalog: Static registry of model descriptors
- ModelSelector: Ranks affordable candidates for a task request
- BudgetLedger: Serialized monthly spend with reservations
- Dispatcher: Provider invocation with a bounded fallback chain
- Router: Public entry point owning all of the above
- Providers: Individual LLM provider implementations
"""

from .base_router import (
    CostPreference,
    DispatchState,
    Priority,
    ProviderType,
    QualityTier,
    RoutingResponse,
    SpeedTier,
    TaskRequest,
    TaskType,
)
from .budget_ledger import BudgetLedger, BudgetSnapshot
from .catalog import ModelCatalog, ModelDescriptor, default_catalog
from .dispatcher import Dispatcher
from .selector import ModelSelector, SelectionWeights
from .unified_router import Router

__all__ = [
    "BudgetLedger",
    "BudgetSnapshot",
    "CostPreference",
    "Dispatcher",
    "DispatchState",
    "ModelCatalog",
    "ModelDescriptor",
    "ModelSelector",
    "Priority",
    "ProviderType",
    "QualityTier",
    "Router",
    "RoutingResponse",
    "SelectionWeights",
    "SpeedTier",
    "TaskRequest",
    "TaskType",
    "default_catalog",
]
