"""
Error taxonomy for the Drive listing API.

HTTP failures are mapped to a small set of typed errors so collaborators can
choose user-facing messaging without parsing raw responses.
"""

from enum import Enum
from typing import Any, Optional

from ..core.cancel import OperationCancelled


class DriveApiError(Exception):
    """
    Base error for Drive API failures.

    Attributes:
        status: HTTP status code, if a response was received
        reason: Machine-readable reason from the error envelope, if present
    """

    def __init__(self, message: str, status: Optional[int] = None, reason: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.reason = reason


class RateLimitedError(DriveApiError):
    """HTTP 429, or 403 with a quota/rate-limit reason."""


class PermissionDeniedError(DriveApiError):
    """HTTP 401/403 (not quota related)."""


class NotFoundError(DriveApiError):
    """HTTP 404."""


class BadRequestError(DriveApiError):
    """HTTP 400."""


class UnknownDriveError(DriveApiError):
    """5xx after retries, or any status not covered above."""


class NetworkError(DriveApiError):
    """Connection failure or timeout that persisted through every retry."""


class ExportError(DriveApiError):
    """A file's content could not be fetched during archive export."""

    def __init__(self, message: str, item_name: str = "", status: Optional[int] = None):
        super().__init__(message, status=status)
        self.item_name = item_name


class ErrorKind(str, Enum):
    RATE_LIMITED = "rate_limited"
    PERMISSION_DENIED = "permission_denied"
    NOT_FOUND = "not_found"
    BAD_REQUEST = "bad_request"
    NETWORK = "network"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"


RATE_LIMIT_REASONS = frozenset({
    "rateLimitExceeded",
    "userRateLimitExceeded",
    "dailyLimitExceeded",
    "sharingRateLimitExceeded",
})


def is_retryable_status(status: int) -> bool:
    """Only 429 and 5xx are retried; other 4xx surface immediately."""
    return status == 429 or 500 <= status <= 599


def extract_reason(payload: Any) -> tuple[Optional[str], Optional[str]]:
    """
    Pull (message, reason) out of a Drive error envelope.

    Envelope shape: {"error": {"code", "message", "errors": [{"reason"}]}}
    """
    if not isinstance(payload, dict):
        return None, None
    error = payload.get("error")
    if not isinstance(error, dict):
        return None, None
    message = error.get("message")
    reason = None
    errors = error.get("errors")
    if isinstance(errors, list) and errors and isinstance(errors[0], dict):
        reason = errors[0].get("reason")
    return message, reason


def error_from_response(status: int, payload: Any = None) -> DriveApiError:
    """Map an HTTP status and (optional) error envelope to a typed error."""
    message, reason = extract_reason(payload)
    message = message or f"Drive API error (HTTP {status})"

    if status == 429 or (status == 403 and reason in RATE_LIMIT_REASONS):
        return RateLimitedError(message, status=status, reason=reason)
    if status in (401, 403):
        return PermissionDeniedError(message, status=status, reason=reason)
    if status == 404:
        return NotFoundError(message, status=status, reason=reason)
    if status == 400:
        return BadRequestError(message, status=status, reason=reason)
    return UnknownDriveError(message, status=status, reason=reason)


def classify_error(exc: BaseException) -> ErrorKind:
    """Stable category for any exception the core can raise."""
    if isinstance(exc, OperationCancelled):
        return ErrorKind.CANCELLED
    if isinstance(exc, RateLimitedError):
        return ErrorKind.RATE_LIMITED
    if isinstance(exc, PermissionDeniedError):
        return ErrorKind.PERMISSION_DENIED
    if isinstance(exc, NotFoundError):
        return ErrorKind.NOT_FOUND
    if isinstance(exc, BadRequestError):
        return ErrorKind.BAD_REQUEST
    if isinstance(exc, NetworkError):
        return ErrorKind.NETWORK
    return ErrorKind.UNKNOWN
