"""
Configuration management for Drive Gallery.

Sources:
- Environment: GOOGLE_API_KEY, ROOT_FOLDER_ID (required), DRIVEGALLERY_HOME (data dir)
- <data dir>/settings.json: optional tunables (batch sizes, compression, archive name)
"""

from .settings import GalleryConfig, API_KEY_ENV, ROOT_FOLDER_ENV

__all__ = [
    "GalleryConfig",
    "API_KEY_ENV",
    "ROOT_FOLDER_ENV",
]
