"""
Provider implementations for different LLM services.

Each provider implements ``invoke(model, prompt, max_tokens) -> str`` and is
registered against its ProviderType, so the dispatcher never branches on the
provider.
"""

import logging
from typing import Dict

from ai_router.core.config import Settings
from ..base_router import ProviderType
from .base_provider import BaseProvider
from .anthropic_provider import AnthropicProvider
from .openai_provider import OpenAIProvider
from .gemini_provider import GeminiProvider
from .ollama_provider import OllamaProvider

logger = logging.getLogger(__name__)


def build_providers(settings: Settings) -> Dict[ProviderType, BaseProvider]:
    """
    Create adapters for every provider that can be used.

    Providers without credentials are left out and treated as permanently
    unavailable; that is logged, not raised.
    """
    timeout = settings.PROVIDER_TIMEOUT_SECONDS
    providers: Dict[ProviderType, BaseProvider] = {}

    def _missing(provider: ProviderType, env_key: str) -> None:
        logger.warning(f"{provider.value} unavailable: {env_key} not configured")

    if settings.ANTHROPIC_API_KEY:
        providers[ProviderType.ANTHROPIC] = AnthropicProvider(settings.ANTHROPIC_API_KEY, timeout)
    else:
        _missing(ProviderType.ANTHROPIC, "ANTHROPIC_API_KEY")

    if settings.OPENAI_API_KEY:
        providers[ProviderType.OPENAI] = OpenAIProvider(settings.OPENAI_API_KEY, timeout_seconds=timeout)
    else:
        _missing(ProviderType.OPENAI, "OPENAI_API_KEY")

    if settings.GOOGLE_API_KEY:
        providers[ProviderType.GEMINI] = GeminiProvider(settings.GOOGLE_API_KEY, timeout)
    else:
        _missing(ProviderType.GEMINI, "GOOGLE_API_KEY")

    if settings.OLLAMA_ENABLED:
        providers[ProviderType.OLLAMA] = OllamaProvider(settings.OLLAMA_BASE_URL, timeout)

    return providers


__all__ = [
    "BaseProvider",
    "AnthropicProvider",
    "OpenAIProvider",
    "GeminiProvider",
    "OllamaProvider",
    "build_providers"
]
