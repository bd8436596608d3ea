"""
Error model shared by every layer.

All failed calls resolve to an APIError carrying a kind, a message and,
when the upstream payload provides them, the offending field and a help link.
"""

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Classification of a failed call."""

    VALIDATION = "validation"
    AUTHORIZATION = "authorization"
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"
    UNKNOWN = "unknown"
    CANCELLED = "cancelled"
    TRANSPORT_FAILURE = "transport_failure"


RETRYABLE_KINDS = frozenset({ErrorKind.RATE_LIMITED, ErrorKind.SERVER_ERROR, ErrorKind.TRANSPORT_FAILURE})


class CLIError(Exception):
    """Base error class for CLI errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON output."""
        result: dict[str, Any] = {"error": self.message}
        if self.details:
            result["details"] = self.details
        return result


class APIError(CLIError):
    """Structured error for a failed API call."""

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.UNKNOWN,
        status: int = 0,
        field: str | None = None,
        help: str | None = None,  # noqa: A002
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.kind = kind
        self.status = status
        self.field = field
        self.help = help

    @property
    def is_retryable(self) -> bool:
        """Whether backing off and calling again may succeed."""
        return self.kind in RETRYABLE_KINDS

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON output."""
        result = super().to_dict()
        result["kind"] = self.kind.value
        if self.status:
            result["status"] = self.status
        if self.field:
            result["field"] = self.field
        if self.help:
            result["help"] = self.help
        return result

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value!r}, status={self.status}, message={self.message!r})"


class ValidationError(APIError):
    """Validation error for local input/data issues (not API errors)."""

    def __init__(self, message: str, field: str | None = None, details: dict | None = None):
        super().__init__(message, kind=ErrorKind.VALIDATION, field=field, details=details)


class ResponseShapeError(TypeError):
    """A success payload did not have the shape the caller asked for.

    This is a programming error (the wrong shape was requested for an
    endpoint) and is raised rather than returned as a result.
    """


def cancelled_error(message: str = "Request cancelled") -> APIError:
    return APIError(message, kind=ErrorKind.CANCELLED)


def transport_error(message: str) -> APIError:
    return APIError(message, kind=ErrorKind.TRANSPORT_FAILURE)
