from __future__ import annotations

from enum import Enum
from typing import Optional


class HttpError(RuntimeError):
    """Raised by the adapter for every failed operation.

    Carries an HTTP-like ``status_code`` so callers (typically request
    handlers) can pass it straight through to a response.
    """

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __repr__(self) -> str:
        return f"HttpError({self.message!r}, {self.status_code})"


class FailureReason(str, Enum):
    CONDITIONAL_CHECK_FAILED = "conditional_check_failed"
    OTHER = "other"


class RemoteFailure(RuntimeError):
    """Raised when a DynamoDB call fails.

    Wraps botocore exceptions so the adapter can branch on ``reason``
    instead of inspecting error names.
    """

    def __init__(
        self,
        operation: str,
        reason: FailureReason,
        code: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(f"{operation} failed ({code or reason.value}): {cause}")
        self.operation = operation
        self.reason = reason
        self.code = code
        self.cause = cause

    @property
    def conditional_check_failed(self) -> bool:
        return self.reason is FailureReason.CONDITIONAL_CHECK_FAILED
