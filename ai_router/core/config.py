"""Router configuration using pydantic settings."""

from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Router settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",  # Ignore extra environment variables not defined in Settings
    )

    # Budget Management
    MONTHLY_BUDGET_USD: float = 30.0
    DEFAULT_MAX_TOKENS: int = 1000

    # Selection tuning
    COST_BASELINE_USD: float = 0.01  # Cost-efficiency baseline per request

    # Provider calls
    PROVIDER_TIMEOUT_SECONDS: float = 30.0

    # Provider credentials - empty means the provider is unavailable
    ANTHROPIC_API_KEY: str = ""
    OPENAI_API_KEY: str = ""
    GOOGLE_API_KEY: str = ""

    # Embedded free tier (local OpenAI-compatible endpoint)
    OLLAMA_ENABLED: bool = True
    OLLAMA_BASE_URL: str = "http://localhost:11434/v1"

    # Circuit breaker
    CIRCUIT_BREAKER_FAILURE_THRESHOLD: int = 5
    CIRCUIT_BREAKER_RECOVERY_TIMEOUT: int = 60

    # Logging
    LOG_LEVEL: str = "INFO"


@lru_cache()
def get_settings() -> Settings:
    """Return the cached settings instance."""
    return Settings()
