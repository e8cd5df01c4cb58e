"""Environment configuration using pydantic-settings."""

import re
from functools import lru_cache
from typing import Literal

import structlog
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = structlog.get_logger()


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Mock control (opt-in feature gate for testing)
    mock_openrouter: bool = False  # Serve generator calls locally (don't call OpenRouter API)

    # OpenRouter configuration
    openrouter_api_key: str = ""
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    llm_model: str = "google/gemini-2.0-flash-001"
    llm_max_tokens: int = 4096
    llm_temperature: float = 0.4
    llm_timeout_seconds: float = 60.0

    # Document store
    max_stored_resumes: int = 1000

    # Rate limiting
    rate_limit_per_minute: int = 10

    # Server configuration
    port: int = 4000
    host: str = "0.0.0.0"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    environment: Literal["development", "production"] = "development"
    cors_allowed_origins: list[str] = ["http://localhost:5173"]

    # Job catalogue used by the analysis flow
    jobs_json_path: str = "data/jobs.json"

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def has_openrouter_key(self) -> bool:
        """Check if OpenRouter API key is configured."""
        return bool(self.openrouter_api_key and self.openrouter_api_key.startswith("sk-"))

    def validate_openrouter_api_key(self) -> int:
        """Validate OpenRouter API key format.

        Returns:
            Integer status code (not derived from key content):
            - 0: not set
            - 1: valid format
            - 2: incorrect prefix
            - 3: incorrect length
            - 4: invalid characters
        """
        if not self.openrouter_api_key:
            return 0

        key = self.openrouter_api_key

        if not key.startswith("sk-or-v1-"):
            return 2

        if len(key) < 40 or len(key) > 100:
            return 3

        key_body = key[len("sk-or-v1-"):]
        if not re.match(r"^[A-Za-z0-9_-]+$", key_body):
            return 4

        return 1


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
