"""Unit tests for the model catalog."""

import pytest

from ai_router.core.exceptions import ConfigurationError
from ai_router.services.routing.base_router import ProviderType, QualityTier, SpeedTier, TaskType
from ai_router.services.routing.catalog import ModelCatalog, ModelDescriptor, default_catalog


@pytest.mark.unit
class TestModelDescriptor:

    def test_estimated_cost_scales_per_thousand_tokens(self, descriptor_factory):
        descriptor = descriptor_factory("paid", ProviderType.OPENAI, 0.5, [TaskType.CHAT_CONVERSATION])

        assert descriptor.estimated_cost(1000) == 0.5
        assert descriptor.estimated_cost(500) == 0.25
        assert not descriptor.is_free

    def test_free_model_costs_nothing(self, free_model):
        assert free_model.is_free
        assert free_model.estimated_cost(100000) == 0.0

    def test_upstream_model_defaults_to_name(self, free_model):
        assert free_model.upstream_model == "free-local"

        mapped = ModelDescriptor(
            name="embedded", provider=ProviderType.OLLAMA, cost_per_thousand_tokens=0.0,
            capability_tags=[TaskType.CHAT_CONVERSATION], quality_tier=QualityTier.GOOD,
            speed_tier=SpeedTier.FAST, max_context_tokens=8000, provider_model="llama3.1:8b",
        )
        assert mapped.upstream_model == "llama3.1:8b"
        assert isinstance(mapped.capability_tags, frozenset)

    @pytest.mark.parametrize("kwargs", [
        {"name": ""},
        {"cost_per_thousand_tokens": -0.1},
        {"max_context_tokens": 0},
    ])
    def test_invalid_descriptor_rejected(self, kwargs):
        fields = dict(
            name="model", provider=ProviderType.OPENAI, cost_per_thousand_tokens=0.001,
            capability_tags=frozenset(), quality_tier=QualityTier.GOOD,
            speed_tier=SpeedTier.FAST, max_context_tokens=1000,
        )
        fields.update(kwargs)

        with pytest.raises(ConfigurationError):
            ModelDescriptor(**fields)


@pytest.mark.unit
class TestModelCatalog:

    def test_iterates_in_name_order(self, small_catalog):
        assert [d.name for d in small_catalog] == ["cheap-fast", "free-local", "mid-excellent", "premium"]
        assert len(small_catalog) == 4
        assert "premium" in small_catalog
        assert small_catalog.get("missing") is None

    def test_duplicate_names_rejected(self, free_model):
        with pytest.raises(ConfigurationError):
            ModelCatalog([free_model, free_model])

    def test_empty_catalog_rejected(self):
        with pytest.raises(ConfigurationError):
            ModelCatalog([])

    def test_find_by_capability(self, small_catalog):
        names = [d.name for d in small_catalog.find_by_capability(TaskType.CODE_GENERATION)]

        assert names == ["cheap-fast", "mid-excellent", "premium"]

    def test_candidates_fall_back_to_general_purpose(self, small_catalog):
        # Nothing in the small catalog is tagged multimodal
        names = [d.name for d in small_catalog.candidates_for(TaskType.MULTIMODAL)]

        assert names == ["cheap-fast", "free-local"]

    def test_free_models_and_cheapest_paid(self, small_catalog):
        assert [d.name for d in small_catalog.free_models()] == ["free-local"]
        assert [d.name for d in small_catalog.cheapest_paid()] == ["cheap-fast", "mid-excellent", "premium"]

    def test_cheapest_paid_ties_break_on_name(self, descriptor_factory):
        catalog = ModelCatalog([
            descriptor_factory("zeta", ProviderType.OPENAI, 0.001, []),
            descriptor_factory("alpha", ProviderType.GEMINI, 0.001, []),
        ])

        assert [d.name for d in catalog.cheapest_paid()] == ["alpha", "zeta"]

    def test_providers(self, small_catalog):
        assert small_catalog.providers == frozenset(ProviderType)

    def test_restricted_to_drops_unavailable_providers(self, small_catalog):
        restricted = small_catalog.restricted_to([ProviderType.OLLAMA, ProviderType.OPENAI])

        assert [d.name for d in restricted] == ["cheap-fast", "free-local"]
        assert len(small_catalog) == 4

    def test_restricted_to_nothing_is_configuration_error(self, small_catalog):
        with pytest.raises(ConfigurationError):
            small_catalog.restricted_to([])

    def test_recommendations_pick_cheapest_per_task(self, small_catalog):
        recommended = small_catalog.recommendations()

        assert recommended[TaskType.QUICK_ANALYSIS] == "free-local"
        assert recommended[TaskType.CODE_GENERATION] == "cheap-fast"
        assert recommended[TaskType.ARCHITECTURE] == "premium"
        assert TaskType.MULTIMODAL not in recommended


@pytest.mark.unit
class TestDefaultCatalog:

    def test_contains_every_provider_and_a_free_tier(self):
        catalog = default_catalog()

        assert catalog.providers == frozenset(ProviderType)
        assert [d.name for d in catalog.free_models()] == ["embedded-llama"]
        assert catalog.get("embedded-llama").upstream_model == "llama3.1:8b"

    def test_every_task_type_has_candidates(self):
        catalog = default_catalog()

        for task_type in TaskType:
            assert catalog.candidates_for(task_type), task_type
