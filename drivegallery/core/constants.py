"""
Shared constants for Drive Gallery.
"""

# Google Drive MIME types
FOLDER_MIME = "application/vnd.google-apps.folder"
IMAGE_MIME_PREFIX = "image/"

# Cover thumbnails
COVER_CACHE_TTL = 60 * 60 * 24  # 24 hours, in seconds
COVER_THUMBNAIL_SIZE = 480
BULK_COVER_BATCH_SIZE = 32
VISIBLE_COVER_BATCH_SIZE = 6

# Archive export
ARCHIVE_COMPRESSION_LEVEL = 6
DEFAULT_ARCHIVE_NAME = "gallery.zip"
DEFAULT_LINKS_NAME = "gallery-download-links.txt"
FALLBACK_ENTRY_NAME = "file"

# Global search
SEARCH_RESULT_LIMIT = 240

# Namespaced keys in the local key-value store
STORAGE_NAMESPACE = "drivegallery"
COVERS_STORAGE_KEY = f"{STORAGE_NAMESPACE}.covers"
ALBUMS_STORAGE_KEY = f"{STORAGE_NAMESPACE}.albums"
