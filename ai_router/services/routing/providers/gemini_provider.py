"""
Gemini Provider - Google Gemini models via the google-genai SDK
"""

import logging
from typing import Optional

from google import genai
from google.genai import types as genai_types

from .base_provider import BaseProvider, DEFAULT_TIMEOUT_SECONDS
from ..base_router import ProviderType

logger = logging.getLogger(__name__)


class GeminiProvider(BaseProvider):
    """Gemini provider for long-context and data analysis tasks."""

    provider_type = ProviderType.GEMINI

    def __init__(
        self,
        api_key: str,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        client: Optional[genai.Client] = None
    ):
        super().__init__(timeout_seconds)
        self.client = client or genai.Client(api_key=api_key)

        logger.info("Gemini provider initialized")

    async def _generate(self, model: str, prompt: str, max_tokens: int) -> str:
        response = await self.client.aio.models.generate_content(
            model=model,
            contents=prompt,
            config=genai_types.GenerateContentConfig(max_output_tokens=max_tokens)
        )
        return response.text or ""
