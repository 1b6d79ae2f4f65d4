"""
Download and view URL builders for Drive items.
"""

from urllib.parse import quote, urlencode

from .models import RemoteItem

API_MEDIA_URL = "https://www.googleapis.com/drive/v3/files/{file_id}"
FALLBACK_DOWNLOAD_URL = "https://drive.google.com/uc"
PREVIEW_URL = "https://drive.google.com/file/d/{file_id}/view"
FOLDER_URL = "https://drive.google.com/drive/folders/{folder_id}"


def api_download_url(file_id: str, api_key: str) -> str:
    """Authorized direct-content URL (alt=media) for a file."""
    query = urlencode({"alt": "media", "key": api_key})
    return f"{API_MEDIA_URL.format(file_id=quote(file_id, safe=''))}?{query}"


def fallback_download_url(file_id: str) -> str:
    """Public export URL that works without an API key for shared files."""
    return f"{FALLBACK_DOWNLOAD_URL}?{urlencode({'export': 'download', 'id': file_id})}"


def download_url(item: RemoteItem) -> str:
    """Best browser download link for an item: its content link, else the export URL."""
    return item.web_content_link or fallback_download_url(item.id)


def preview_url(file_id: str) -> str:
    return PREVIEW_URL.format(file_id=quote(file_id, safe=""))


def folder_url(folder_id: str) -> str:
    return FOLDER_URL.format(folder_id=quote(folder_id, safe=""))
