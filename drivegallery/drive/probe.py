"""
Blocking configuration probe.

Checks, before any event loop starts, that the configured API key can see
the configured root folder. Used by the CLI `check` command.
"""

from typing import Optional

import requests

from ..core.constants import FOLDER_MIME
from .client import DriveClient
from .errors import DriveApiError, NetworkError, error_from_response


def fetch_folder_metadata(api_key: str, folder_id: str, timeout: int = 30) -> dict:
    """
    Fetch id/name/mimeType for a folder.

    Raises:
        DriveApiError subclass on HTTP failure, NetworkError on connection failure
    """
    params = {
        "key": api_key,
        "fields": "id,name,mimeType",
        "supportsAllDrives": "true",
    }
    try:
        response = requests.get(f"{DriveClient.API_FILES}/{folder_id}", params=params, timeout=timeout)
    except requests.exceptions.RequestException as e:
        raise NetworkError(f"Network error: {e}") from e

    if not response.ok:
        try:
            payload = response.json()
        except ValueError:
            payload = None
        raise error_from_response(response.status_code, payload)
    return response.json()


def validate_folder(api_key: str, folder_id: str) -> tuple[bool, Optional[str], Optional[DriveApiError]]:
    """
    Check if a folder is accessible and get its name.

    Returns:
        Tuple of (is_valid, folder_name, error)
        - (True, "Folder Name", None) if accessible
        - (False, None, None) if accessible but not a folder
        - (False, None, error) if the request failed
    """
    try:
        metadata = fetch_folder_metadata(api_key, folder_id)
    except DriveApiError as e:
        return False, None, e

    if metadata.get("mimeType") != FOLDER_MIME:
        return False, None, None

    return True, metadata.get("name"), None
