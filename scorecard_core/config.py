"""
Unified configuration for scorecard.

This module provides a single Settings class that consolidates the
environment variables used by the evaluation harness, the LLM client
and the demonstration services.
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Determine project root for .env file loading (allows running from any CWD)
PROJECT_ROOT = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """
    Unified settings for scorecard.

    Environment variables are loaded from .env file and can be overridden
    by actual environment variables.
    """

    # Service identification
    SERVICE_NAME: str = "scorecard"
    LOG_LEVEL: str = "INFO"

    # OpenAI
    OPENAI_API_KEY: str = ""
    OPENAI_BASE_URL: str = ""

    # Models
    TASK_MODEL_ID: str = "gpt-5-mini"
    JUDGE_MODEL_ID: str = "gpt-5-mini"
    EMBEDDING_MODEL_ID: str = "text-embedding-3-small"

    # LLM client behaviour
    LLM_TIMEOUT_SECONDS: float = 60.0
    LLM_MAX_ATTEMPTS: int = 3
    LLM_RETRY_BASE_DELAY: float = 1.0

    # Evaluation runs
    EVAL_CONCURRENCY: int = 1
    EVAL_TASK_TIMEOUT_SECONDS: float | None = None
    EVAL_MAX_PARALLEL_VARIANTS: int = 1

    # Scorer / prompt thresholds
    CONCISENESS_MAX_WORDS: int = 120
    SUPPORT_MAX_WORDS: int = 100

    # Bundled datasets
    DATA_DIR: Path = PROJECT_ROOT / "app" / "data"

    model_config = SettingsConfigDict(
        env_file=PROJECT_ROOT / ".env",
        extra="ignore"
    )


# Global settings instance
settings = Settings()  # type: ignore
