"""
Base Provider - Common interface for all LLM providers

Every provider exposes ``invoke(model, prompt, max_tokens) -> str``. The base
class applies the call timeout, translates SDK errors into
ProviderUnavailableError, rejects empty responses and tracks per-provider
statistics, so subclasses only implement ``_generate``.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Dict

from ai_router.core.exceptions import ProviderTimeoutError, ProviderUnavailableError
from ..base_router import ProviderType

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0
HEALTH_CHECK_TIMEOUT_SECONDS = 10.0


class BaseProvider(ABC):
    """
    Base class for all LLM providers.

    Subclasses set ``provider_type`` and implement ``_generate``.
    """

    provider_type: ProviderType

    def __init__(self, timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS):
        """
        Initialize provider.

        Args:
            timeout_seconds: Upper bound for a single provider call
        """
        self.timeout_seconds = timeout_seconds

        # Performance tracking
        self.total_requests = 0
        self.total_failures = 0
        self.total_latency_ms = 0

    @property
    def name(self) -> str:
        return self.provider_type.value

    @abstractmethod
    async def _generate(self, model: str, prompt: str, max_tokens: int) -> str:
        """Call the provider API and return the response text."""

    async def invoke(self, model: str, prompt: str, max_tokens: int) -> str:
        """
        Generate a completion for ``prompt`` with ``model``.

        Raises:
            ProviderTimeoutError: If the call exceeds the timeout
            ProviderUnavailableError: If the call fails or returns no text
        """
        start_time = time.monotonic()
        self.total_requests += 1

        try:
            text = await asyncio.wait_for(
                self._generate(model, prompt, max_tokens),
                timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError:
            self.total_failures += 1
            raise ProviderTimeoutError(self.name, self.timeout_seconds, details={"model": model})
        except ProviderUnavailableError:
            self.total_failures += 1
            raise
        except Exception as e:
            self.total_failures += 1
            raise ProviderUnavailableError(
                self.name,
                message=f"{self.name} generation failed: {type(e).__name__}: {e}",
                details={"model": model}
            ) from e

        latency_ms = int((time.monotonic() - start_time) * 1000)
        self.total_latency_ms += latency_ms

        if not text or not text.strip():
            self.total_failures += 1
            raise ProviderUnavailableError(
                self.name,
                message=f"{self.name} returned an empty response",
                details={"model": model}
            )

        logger.info(
            "Provider request",
            extra={
                "provider": self.name,
                "model": model,
                "prompt_length": len(prompt),
                "max_tokens": max_tokens,
                "latency_ms": latency_ms
            }
        )
        return text

    async def health_check(self, model: str) -> bool:
        """Check that ``model`` answers a minimal request."""
        try:
            await asyncio.wait_for(
                self._generate(model, "Hello", 1),
                timeout=HEALTH_CHECK_TIMEOUT_SECONDS
            )
            return True
        except Exception as e:
            logger.error(f"{self.name} health check failed: {e}")
            return False

    def get_stats(self) -> Dict[str, Any]:
        """Get performance statistics."""
        successes = self.total_requests - self.total_failures
        return {
            "provider": self.name,
            "total_requests": self.total_requests,
            "total_failures": self.total_failures,
            "average_latency_ms": self.total_latency_ms / max(successes, 1)
        }

    def reset_stats(self):
        self.total_requests = 0
        self.total_failures = 0
        self.total_latency_ms = 0
