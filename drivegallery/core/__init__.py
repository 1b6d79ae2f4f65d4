"""
Core utilities for Drive Gallery.

Shared constants, paths, logging, formatting, progress and cancellation.
"""

from .constants import (
    FOLDER_MIME,
    IMAGE_MIME_PREFIX,
    COVER_CACHE_TTL,
    BULK_COVER_BATCH_SIZE,
    VISIBLE_COVER_BATCH_SIZE,
)

from .paths import (
    get_data_dir,
    get_storage_path,
    get_settings_path,
    get_logs_dir,
)

from .formatting import (
    sanitize_entry_name,
    UniqueNamer,
    normalize_for_search,
    matches_query,
    format_size,
    sized_thumbnail,
)

from .cancel import CancelToken, OperationCancelled, check_cancelled
from .progress import Progress, ProgressCallback

__all__ = [
    # Constants
    "FOLDER_MIME",
    "IMAGE_MIME_PREFIX",
    "COVER_CACHE_TTL",
    "BULK_COVER_BATCH_SIZE",
    "VISIBLE_COVER_BATCH_SIZE",
    # Paths
    "get_data_dir",
    "get_storage_path",
    "get_settings_path",
    "get_logs_dir",
    # Formatting
    "sanitize_entry_name",
    "UniqueNamer",
    "normalize_for_search",
    "matches_query",
    "format_size",
    "sized_thumbnail",
    # Cancellation
    "CancelToken",
    "OperationCancelled",
    "check_cancelled",
    # Progress
    "Progress",
    "ProgressCallback",
]
