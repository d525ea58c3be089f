"""Application configuration settings."""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from codescope.core.errors import ConfigError

logger = logging.getLogger(__name__)


def _find_env_file() -> str | None:
    """Find .env file in common locations.

    Checks (in order):
    1. .env (running from project root)
    2. ../.env (running from a subdirectory)
    3. None (rely on environment variables)
    """
    candidates = [
        Path(".env"),
        Path("../.env"),
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class Settings(BaseSettings):
    """Settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=_find_env_file(),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_env: Literal["development", "staging", "production"] = "development"
    debug: bool = False

    # LLM providers (via LiteLLM)
    groq_api_key: str = ""
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    gemini_api_key: str = ""
    default_llm_model: str = "groq/llama-3.3-70b-versatile"
    llm_temperature: float = 0.3
    llm_max_tokens: int = 4096

    # Chunking for AI review
    chunk_size: int = Field(default=1500, description="Max lines per chunk")
    chunk_overlap: int = Field(default=50, description="Lines shared by consecutive chunks")

    # AI review throttling
    ai_review_enabled: bool = True
    max_concurrent_ai_requests: int = 3
    ai_batch_delay_seconds: float = 1.5
    ai_request_timeout_seconds: float = 120.0
    ai_max_prompt_chars: int = 12000
    ai_review_languages: list[str] = ["JavaScript", "TypeScript", "Python"]

    @model_validator(mode="after")
    def validate_analysis_settings(self) -> "Settings":
        """Reject chunking/throttling values the pipeline cannot run with.

        Overlap must stay strictly below the chunk size, otherwise the chunker
        would never advance. Missing LLM keys only produce a warning: static
        analysis still works without them.
        """
        if self.chunk_size < 1:
            raise ConfigError(f"CHUNK_SIZE must be >= 1, got {self.chunk_size}")
        if self.chunk_overlap < 0:
            raise ConfigError(f"CHUNK_OVERLAP must be >= 0, got {self.chunk_overlap}")
        if self.chunk_overlap >= self.chunk_size:
            raise ConfigError(
                f"CHUNK_OVERLAP ({self.chunk_overlap}) must be smaller than "
                f"CHUNK_SIZE ({self.chunk_size})"
            )
        if self.max_concurrent_ai_requests < 1:
            raise ConfigError(
                f"MAX_CONCURRENT_AI_REQUESTS must be >= 1, got {self.max_concurrent_ai_requests}"
            )
        if self.ai_batch_delay_seconds < 0:
            raise ConfigError("AI_BATCH_DELAY_SECONDS must not be negative")

        has_llm_key = any([
            self.groq_api_key,
            self.openai_api_key,
            self.anthropic_api_key,
            self.gemini_api_key,
        ])
        if self.ai_review_enabled and not has_llm_key:
            logger.warning(
                "CONFIG WARNING: No LLM API keys configured. AI review will "
                "return no findings. Set at least one of: GROQ_API_KEY, "
                "OPENAI_API_KEY, ANTHROPIC_API_KEY, GEMINI_API_KEY."
            )

        return self


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
