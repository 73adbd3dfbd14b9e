"""
Runtime layer for scorecard.

This package provides shared infrastructure for runs and collaborators:
- RunContext: Run-scoped context with run id, variant and deadline
- ServiceError: Errors from external services with retry semantics
- RetryPolicy: Configurable retry behavior for LLM calls
"""

from .context import RunContext
from .errors import ErrorCode, RetryableError, ServiceError, TerminalError
from .retry import RetryPolicy, with_retry

__all__ = [
    "RunContext",
    "ErrorCode",
    "ServiceError",
    "RetryableError",
    "TerminalError",
    "RetryPolicy",
    "with_retry",
]
