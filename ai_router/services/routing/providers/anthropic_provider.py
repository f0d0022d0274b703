"""
Anthropic Provider - Claude models via the Messages API
"""

import logging
from typing import Optional

from anthropic import AsyncAnthropic

from .base_provider import BaseProvider, DEFAULT_TIMEOUT_SECONDS
from ..base_router import ProviderType

logger = logging.getLogger(__name__)


class AnthropicProvider(BaseProvider):
    """Claude provider for deep reasoning and architecture work."""

    provider_type = ProviderType.ANTHROPIC

    def __init__(
        self,
        api_key: str,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        client: Optional[AsyncAnthropic] = None
    ):
        super().__init__(timeout_seconds)

        # SDK retries disabled: a failed model is never retried
        self.client = client or AsyncAnthropic(api_key=api_key, max_retries=0)

        logger.info("Anthropic provider initialized")

    async def _generate(self, model: str, prompt: str, max_tokens: int) -> str:
        response = await self.client.messages.create(
            model=model,
            max_tokens=max_tokens,
            messages=[{"role": "user", "content": prompt}]
        )
        return "".join(
            block.text for block in response.content
            if getattr(block, "type", None) == "text"
        )
