"""
Google Drive API access for Drive Gallery.
"""

from .client import DriveClient, DriveClientConfig, ListPage, children_query
from .errors import (
    DriveApiError,
    RateLimitedError,
    PermissionDeniedError,
    NotFoundError,
    BadRequestError,
    UnknownDriveError,
    NetworkError,
    ExportError,
    ErrorKind,
    classify_error,
    error_from_response,
)
from .models import RemoteItem

__all__ = [
    "DriveClient",
    "DriveClientConfig",
    "ListPage",
    "children_query",
    "RemoteItem",
    # Errors
    "DriveApiError",
    "RateLimitedError",
    "PermissionDeniedError",
    "NotFoundError",
    "BadRequestError",
    "UnknownDriveError",
    "NetworkError",
    "ExportError",
    "ErrorKind",
    "classify_error",
    "error_from_response",
]
