"""Unit tests for the service error model."""

from scorecard_core.runtime.errors import ErrorCode, RetryableError, ServiceError, TerminalError


class TestServiceError:
    """Tests for the ServiceError base class."""

    def test_str_includes_code(self):
        error = ServiceError(ErrorCode.INTERNAL_ERROR, "Something broke")

        assert str(error) == "[INTERNAL_ERROR] Something broke"

    def test_generates_debug_id(self):
        """Each error gets a short correlation id unless one is given."""
        assert len(ServiceError("X", "x").debug_id) == 8
        assert ServiceError("X", "x", debug_id="abc").debug_id == "abc"

    def test_to_dict_excludes_debug_message(self):
        error = ServiceError("X", "safe", message_debug="secret details", debug_id="id1")

        assert error.to_dict() == {"code": "X", "message": "safe", "retryable": False, "debug_id": "id1"}

    def test_repr(self):
        error = ServiceError("X", "safe", debug_id="id1")

        assert "code='X'" in repr(error)
        assert "debug_id='id1'" in repr(error)


class TestRetryClassification:
    """Retryable and terminal errors carry the retryable flag."""

    def test_retryable_error(self):
        error = RetryableError(ErrorCode.RATE_LIMITED, "Too many requests")

        assert error.retryable is True
        assert isinstance(error, ServiceError)

    def test_terminal_error(self):
        error = TerminalError(ErrorCode.UNAUTHORIZED, "Bad key")

        assert error.retryable is False
        assert isinstance(error, ServiceError)

    def test_keeps_cause(self):
        cause = TimeoutError("read timeout")
        error = RetryableError(ErrorCode.TIMEOUT, "Timed out", cause=cause)

        assert error.cause is cause
