"""
LLMClient: thin async wrapper over the OpenAI chat and embedding APIs.

Used by task collaborators (summarizer, support bot, alignment judge
task) and as the judge behind JudgedScorer. SDK exceptions are mapped
onto the ServiceError hierarchy and retryable ones are retried with the
configured RetryPolicy.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Sequence, TypeVar

import openai
from loguru import logger
from openai import AsyncOpenAI
from pydantic import BaseModel, ValidationError

from scorecard_core.config import settings
from scorecard_core.infrastructure.openai_client import get_openai_client
from scorecard_core.runtime.errors import ErrorCode, RetryableError, ServiceError, TerminalError
from scorecard_core.runtime.retry import RetryPolicy, with_retry

M = TypeVar("M", bound=BaseModel)
T = TypeVar("T")


def map_openai_error(exc: Exception, policy: RetryPolicy | None = None) -> ServiceError:
    """Classify an openai SDK exception as retryable or terminal."""
    policy = policy or RetryPolicy.from_settings()

    if isinstance(exc, openai.APITimeoutError):
        return RetryableError(ErrorCode.TIMEOUT, "LLM request timed out", cause=exc)
    if isinstance(exc, openai.APIConnectionError):
        return RetryableError(ErrorCode.CONNECTION_ERROR, "Could not reach LLM provider", cause=exc)
    if isinstance(exc, openai.RateLimitError):
        return RetryableError(ErrorCode.RATE_LIMITED, "LLM provider rate limit hit", cause=exc)
    if isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return TerminalError(ErrorCode.UNAUTHORIZED, "LLM provider rejected credentials", cause=exc)
    if isinstance(exc, openai.APIStatusError):
        if policy.should_retry_status(exc.status_code):
            return RetryableError(
                ErrorCode.PROVIDER_UNAVAILABLE,
                f"LLM provider returned {exc.status_code}",
                message_debug=str(exc),
                cause=exc,
            )
        return TerminalError(
            ErrorCode.INVALID_REQUEST,
            f"LLM provider returned {exc.status_code}",
            message_debug=str(exc),
            cause=exc,
        )
    return TerminalError(ErrorCode.INTERNAL_ERROR, f"Unexpected LLM client error: {exc}", cause=exc)


class LLMClient:
    """
    Async text-generation and embedding client.

    Satisfies the judge protocol (``complete(prompt) -> str``) so it can be
    handed directly to a JudgedScorer.

    Usage:
        client = LLMClient(model=settings.JUDGE_MODEL_ID)
        text = await client.complete("Rate the output ...")
    """

    def __init__(
        self,
        model: str | None = None,
        embedding_model: str | None = None,
        client: AsyncOpenAI | None = None,
        retry_policy: RetryPolicy | None = None,
    ):
        """
        Args:
            model: Chat model id (defaults to settings.TASK_MODEL_ID).
            embedding_model: Embedding model id (defaults to settings.EMBEDDING_MODEL_ID).
            client: Pre-built AsyncOpenAI client; the shared singleton otherwise.
            retry_policy: Retry policy; built from settings when omitted.
        """
        self.model = model or settings.TASK_MODEL_ID
        self.embedding_model = embedding_model or settings.EMBEDDING_MODEL_ID
        self._client = client
        self._retry_policy = retry_policy or RetryPolicy.from_settings()

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = get_openai_client()
        return self._client

    async def _call(self, func: Callable[..., Awaitable[T]], **kwargs: Any) -> T:
        async def attempt() -> T:
            try:
                return await func(**kwargs)
            except openai.OpenAIError as e:
                raise map_openai_error(e, self._retry_policy) from e

        attempt.__name__ = getattr(func, "__name__", "llm_call")
        return await with_retry(self._retry_policy)(attempt)()

    def _messages(self, prompt: str, system: str | None) -> list[dict[str, str]]:
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        return messages

    async def complete(self, prompt: str, system: str | None = None) -> str:
        """
        Generate free text for a prompt.

        Raises:
            ServiceError: When the provider fails after retries or returns no text.
        """
        client = self._get_client()
        logger.debug(f"Completion request ({self.model}): '{prompt[:50]}...'")

        response = await self._call(
            client.chat.completions.create,
            model=self.model,
            messages=self._messages(prompt, system),
        )

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise TerminalError(ErrorCode.INVALID_RESPONSE, "LLM returned an empty completion")
        return content

    async def complete_json(self, prompt: str, schema: type[M], system: str | None = None) -> M:
        """
        Generate a JSON object and validate it against a pydantic schema.

        The prompt must ask for JSON explicitly (required by JSON mode).

        Raises:
            TerminalError: If the response does not validate against the schema.
        """
        client = self._get_client()
        response = await self._call(
            client.chat.completions.create,
            model=self.model,
            messages=self._messages(prompt, system),
            response_format={"type": "json_object"},
        )

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise TerminalError(ErrorCode.INVALID_RESPONSE, "LLM returned an empty completion")
        try:
            return schema.model_validate_json(content)
        except ValidationError as e:
            raise TerminalError(
                ErrorCode.INVALID_RESPONSE,
                f"LLM response does not match {schema.__name__}",
                message_debug=content,
                cause=e,
            ) from e

    async def embed_many(self, texts: Sequence[str]) -> list[list[float]]:
        """
        Embed a batch of texts in one request, preserving input order.
        """
        if not texts:
            return []

        client = self._get_client()
        logger.info(f"Embedding {len(texts)} texts with {self.embedding_model}")
        response = await self._call(
            client.embeddings.create,
            model=self.embedding_model,
            input=list(texts),
        )
        ordered = sorted(response.data, key=lambda item: item.index)
        return [list(item.embedding) for item in ordered]
