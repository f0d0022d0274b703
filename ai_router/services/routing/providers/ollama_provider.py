"""
Ollama Provider - Local inference for the free embedded tier

Ollama serves an OpenAI-compatible API, so this provider reuses the OpenAI
client pointed at the local endpoint. No API key is required and calls are
never charged to the budget.
"""

from typing import Optional

from openai import AsyncOpenAI

from .base_provider import DEFAULT_TIMEOUT_SECONDS
from .openai_provider import OpenAIProvider
from ..base_router import ProviderType

DEFAULT_OLLAMA_BASE_URL = "http://localhost:11434/v1"


class OllamaProvider(OpenAIProvider):
    """Local, cost-free provider."""

    provider_type = ProviderType.OLLAMA

    def __init__(
        self,
        base_url: str = DEFAULT_OLLAMA_BASE_URL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        client: Optional[AsyncOpenAI] = None
    ):
        super().__init__(
            api_key="ollama",  # Ollama doesn't require an API key
            base_url=base_url,
            timeout_seconds=timeout_seconds,
            client=client
        )
