"""
Service errors raised by the LLM collaborators.

Every provider failure is reduced to a ServiceError whose class says
whether a repeat attempt can help: RetryableError (rate limits, timeouts,
5xx) or TerminalError (credentials, bad requests, malformed responses).
The evaluation engine never looks at the distinction; for it these are
ordinary task or scorer exceptions.
"""

from __future__ import annotations

import uuid
from typing import Any


class ErrorCode:
    """Error codes for LLM and embedding calls."""

    # transient
    TIMEOUT = "TIMEOUT"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    RATE_LIMITED = "RATE_LIMITED"
    PROVIDER_UNAVAILABLE = "PROVIDER_UNAVAILABLE"

    # permanent
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_REQUEST = "INVALID_REQUEST"
    INVALID_RESPONSE = "INVALID_RESPONSE"
    NOT_CONFIGURED = "NOT_CONFIGURED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ServiceError(Exception):
    """Failed call to an external service.

    Attributes:
        code: One of the ErrorCode values.
        message_safe: Short message, fine to log or print in a report.
        message_debug: Raw provider detail (response body, invalid JSON).
        retryable: Whether repeating the call may succeed.
        cause: The SDK exception this was mapped from.
        debug_id: Eight hex chars tying retry log lines to one failure.
    """

    retryable: bool = False

    def __init__(
        self,
        code: str,
        message_safe: str,
        message_debug: str | None = None,
        retryable: bool | None = None,
        cause: Exception | None = None,
        debug_id: str | None = None,
    ):
        super().__init__(message_safe)
        self.code = code
        self.message_safe = message_safe
        self.message_debug = message_debug
        if retryable is not None:
            self.retryable = retryable
        self.cause = cause
        self.debug_id = debug_id or uuid.uuid4().hex[:8]

    def __str__(self) -> str:
        return f"[{self.code}] {self.message_safe}"

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(code={self.code!r}, message_safe={self.message_safe!r}, "
            f"retryable={self.retryable}, debug_id={self.debug_id!r})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Report-friendly form; message_debug is left out."""
        return {
            "code": self.code,
            "message": self.message_safe,
            "retryable": self.retryable,
            "debug_id": self.debug_id,
        }


class RetryableError(ServiceError):
    """Transient provider failure; with_retry will try again."""

    retryable = True

    def __init__(self, code: str, message_safe: str, **kwargs: Any):
        kwargs.pop("retryable", None)
        super().__init__(code, message_safe, **kwargs)


class TerminalError(ServiceError):
    """Permanent failure; repeating the same request cannot help."""

    retryable = False

    def __init__(self, code: str, message_safe: str, **kwargs: Any):
        kwargs.pop("retryable", None)
        super().__init__(code, message_safe, **kwargs)
