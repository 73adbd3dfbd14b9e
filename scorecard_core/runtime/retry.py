"""
Retry policy for calls to external LLM services.

Retries live with the collaborators (LLM client), never in the
evaluation engine: a task or judge that exhausts its attempts simply
fails, and the run records that failure.
"""

from __future__ import annotations

import asyncio
import functools
import random
from typing import Any, Awaitable, Callable, TypeVar

from loguru import logger
from pydantic import BaseModel

from scorecard_core.config import settings

from .errors import RetryableError

T = TypeVar("T")


class RetryPolicy(BaseModel):
    """Exponential backoff with optional jitter.

    The delay before retry N (0-indexed) is
    min(base_delay * exponential_base ** N, max_delay), plus up to 25%
    jitter when enabled.

    Attributes:
        max_attempts: Maximum number of attempts, including the first one.
        base_delay: Delay in seconds before the first retry.
        max_delay: Cap on a single delay.
        exponential_base: Growth factor between retries.
        jitter: Whether to randomize delays.
        retry_on_status: HTTP status codes treated as transient.
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    exponential_base: float = 2.0
    jitter: bool = True
    retry_on_status: tuple[int, ...] = (408, 409, 429, 500, 502, 503, 504)

    model_config = {"frozen": True}

    @classmethod
    def from_settings(cls) -> "RetryPolicy":
        """Build the policy used by the LLM client from settings."""
        return cls(
            max_attempts=settings.LLM_MAX_ATTEMPTS,
            base_delay=settings.LLM_RETRY_BASE_DELAY,
        )

    def calculate_delay(self, attempt: int) -> float:
        delay = min(self.base_delay * (self.exponential_base**attempt), self.max_delay)
        if self.jitter:
            delay += delay * 0.25 * random.random()
        return delay

    def should_retry_status(self, status_code: int) -> bool:
        return status_code in self.retry_on_status


def with_retry(
    policy: RetryPolicy | None = None,
    on_retry: Callable[[int, RetryableError, float], None] | None = None,
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """Decorator retrying an async function on RetryableError.

    Any other exception, including a non-retryable ServiceError, propagates
    on the first occurrence. The policy is resolved at call time when not
    given, so settings changes in tests are honoured.

    Example:
        @with_retry(RetryPolicy(max_attempts=5))
        async def complete(prompt: str) -> str:
            ...
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            retry_policy = policy or RetryPolicy.from_settings()
            attempt = 0
            while True:
                try:
                    return await func(*args, **kwargs)
                except RetryableError as e:
                    attempt += 1
                    if attempt >= retry_policy.max_attempts:
                        logger.warning(
                            f"[{e.debug_id}] Giving up on {func.__name__} after "
                            f"{attempt} attempts: {e.message_safe}"
                        )
                        raise

                    delay = retry_policy.calculate_delay(attempt - 1)
                    logger.info(
                        f"[{e.debug_id}] Retry {attempt}/{retry_policy.max_attempts - 1} "
                        f"for {func.__name__} in {delay:.2f}s: {e.message_safe}"
                    )
                    if on_retry:
                        on_retry(attempt, e, delay)
                    await asyncio.sleep(delay)

        return wrapper

    return decorator
