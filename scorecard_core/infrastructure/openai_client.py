"""
OpenAI Client Singleton

Provides a shared AsyncOpenAI client so that tasks, judges and the
embedding step of a run reuse one connection pool.
"""

from __future__ import annotations

from loguru import logger
from openai import AsyncOpenAI

from scorecard_core.config import settings
from scorecard_core.runtime.errors import ErrorCode, TerminalError


class OpenAIClientSingleton:
    """
    Singleton wrapper for the async OpenAI client.

    SDK-level retries are disabled; retries are handled by LLMClient
    according to its RetryPolicy.

    Usage:
        client = OpenAIClientSingleton.get_instance()
        response = await client.chat.completions.create(...)
    """

    _instance: AsyncOpenAI | None = None

    @classmethod
    def get_instance(cls) -> AsyncOpenAI:
        """
        Get or create the client instance.

        Raises:
            TerminalError: If OPENAI_API_KEY is not configured.
        """
        if cls._instance is None:
            api_key = settings.OPENAI_API_KEY
            if not api_key:
                raise TerminalError(
                    code=ErrorCode.NOT_CONFIGURED,
                    message_safe="OPENAI_API_KEY not configured. Set it in .env or environment variables.",
                )

            cls._instance = AsyncOpenAI(
                api_key=api_key,
                base_url=settings.OPENAI_BASE_URL or None,
                timeout=settings.LLM_TIMEOUT_SECONDS,
                max_retries=0,
            )
            logger.info("OpenAI client initialized (singleton)")

        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop the cached client (used by tests and after key rotation)."""
        cls._instance = None


def get_openai_client() -> AsyncOpenAI:
    """Convenience function to get the shared client."""
    return OpenAIClientSingleton.get_instance()
