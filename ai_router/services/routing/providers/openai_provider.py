"""
OpenAI Provider - GPT models via chat completions
"""

import logging
from typing import Optional

from openai import AsyncOpenAI

from .base_provider import BaseProvider, DEFAULT_TIMEOUT_SECONDS
from ..base_router import ProviderType

logger = logging.getLogger(__name__)


class OpenAIProvider(BaseProvider):
    """OpenAI provider; also the base for OpenAI-compatible endpoints."""

    provider_type = ProviderType.OPENAI

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        client: Optional[AsyncOpenAI] = None
    ):
        super().__init__(timeout_seconds)

        # SDK retries disabled: a failed model is never retried
        self.client = client or AsyncOpenAI(api_key=api_key, base_url=base_url, max_retries=0)

        logger.info(f"{self.name} provider initialized")

    async def _generate(self, model: str, prompt: str, max_tokens: int) -> str:
        response = await self.client.chat.completions.create(
            model=model,
            messages=[{"role": "user", "content": prompt}],
            max_tokens=max_tokens,
            stream=False
        )
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""
