"""
Custom Exception Hierarchy for the AI Model Router

Provides domain-specific exceptions with structured error codes, logging,
and diagnostic details for routing, budgeting, and provider failures.
"""

import logging
from typing import Optional, Dict, Any, List
from datetime import datetime, timezone

logger = logging.getLogger(__name__)


class RouterException(Exception):
    """
    Base exception for all router errors.

    Attributes:
        error_code: Unique error identifier for logging/debugging
        message: Human-readable error message
        details: Technical details for logging and diagnostics
        timestamp: ISO timestamp of when the error was raised
    """

    log_level = logging.ERROR

    def __init__(
        self,
        message: str,
        error_code: str = "ROUTER_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()

        # Log the error with full context
        logger.log(
            self.log_level,
            f"[{error_code}] {message}",
            extra={
                "error_code": error_code,
                "details": self.details,
                "timestamp": self.timestamp
            }
        )

        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to a plain dictionary for callers and logs."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
            "timestamp": self.timestamp
        }


# ============================================================================
# Request Errors
# ============================================================================

class InvalidTaskRequestError(RouterException):
    """Task request failed validation."""

    def __init__(
        self,
        message: str = "Invalid task request",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            error_code="INVALID_TASK_REQUEST",
            details=details
        )


# ============================================================================
# Provider Errors
# ============================================================================

class ProviderUnavailableError(RouterException):
    """
    Provider call failed or provider cannot be used.

    Raised for missing credentials, network errors, rate limits, auth
    failures and empty responses. Recovered locally by the fallback chain.
    """

    log_level = logging.WARNING

    def __init__(
        self,
        provider: str,
        message: Optional[str] = None,
        error_code: str = "PROVIDER_UNAVAILABLE",
        details: Optional[Dict[str, Any]] = None
    ):
        if details is None:
            details = {}
        details["provider"] = provider
        self.provider = provider

        super().__init__(
            message=message or f"Provider {provider} is unavailable",
            error_code=error_code,
            details=details
        )


class ProviderTimeoutError(ProviderUnavailableError):
    """Provider call exceeded its timeout."""

    def __init__(
        self,
        provider: str,
        timeout_seconds: float,
        details: Optional[Dict[str, Any]] = None
    ):
        if details is None:
            details = {}
        details["timeout_seconds"] = timeout_seconds

        super().__init__(
            provider=provider,
            message=f"Provider {provider} timed out after {timeout_seconds}s",
            error_code="PROVIDER_TIMEOUT",
            details=details
        )


class CircuitBreakerOpenError(ProviderUnavailableError):
    """Circuit breaker is open, preventing requests to the provider."""

    def __init__(
        self,
        provider: str,
        retry_after: float = 0.0,
        details: Optional[Dict[str, Any]] = None
    ):
        if details is None:
            details = {}
        details["retry_after_seconds"] = round(retry_after, 1)

        super().__init__(
            provider=provider,
            message=f"Provider {provider} is temporarily unavailable (circuit breaker open)",
            error_code="CIRCUIT_BREAKER_OPEN",
            details=details
        )


# ============================================================================
# Routing Errors
# ============================================================================

class NoAffordableModelError(RouterException):
    """No candidate model, including the free tier, fits the budget."""

    def __init__(
        self,
        task_type: str,
        available_usd: float,
        details: Optional[Dict[str, Any]] = None
    ):
        if details is None:
            details = {}
        details["task_type"] = task_type
        details["available_usd"] = available_usd

        super().__init__(
            message=f"No affordable model for {task_type} (available budget ${available_usd:.4f})",
            error_code="NO_AFFORDABLE_MODEL",
            details=details
        )


class AllProvidersExhaustedError(RouterException):
    """Every attempt in the fallback chain failed."""

    def __init__(
        self,
        attempted_models: List[str],
        last_error: Optional[BaseException] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        if details is None:
            details = {}
        details["attempted_models"] = list(attempted_models)
        details["last_error"] = repr(last_error) if last_error else None
        self.attempted_models = list(attempted_models)
        self.last_error = last_error

        super().__init__(
            message=f"All providers exhausted after {len(attempted_models)} attempt(s)",
            error_code="ALL_PROVIDERS_EXHAUSTED",
            details=details
        )


# ============================================================================
# Configuration Errors
# ============================================================================

class ConfigurationError(RouterException):
    """Configuration errors (invalid catalog, weights, or settings)."""

    def __init__(
        self,
        message: str = "Configuration error",
        error_code: str = "CONFIGURATION_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            error_code=error_code,
            details=details
        )
