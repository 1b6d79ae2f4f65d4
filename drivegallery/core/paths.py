"""
Centralized path management for Drive Gallery.

All app data is stored in a .drive-gallery/ folder next to the entry script
(or wherever DRIVEGALLERY_HOME points).

Directory structure:
    path/to/gallery.py
    path/to/.drive-gallery/
        storage.json    - Local key-value store (cover cache, album list)
        settings.json   - Optional tunables (batch sizes, archive name)
        logs/           - Session logs written by the CLI
"""

import os
from pathlib import Path

import certifi


# Directory name for app data (hidden on Unix)
DATA_DIR_NAME = ".drive-gallery"


def get_certifi_ssl_context() -> str:
    """Get path to the certifi CA bundle."""
    return certifi.where()


def get_app_dir() -> Path:
    """
    Get the directory the app runs from.

    DRIVEGALLERY_HOME overrides the data location entirely; otherwise the
    repo root (parent of drivegallery/) is used.
    """
    return Path(__file__).parent.parent.parent


def get_data_dir() -> Path:
    """
    Get the data directory, creating it if needed.

    All user-writable app data goes here.
    """
    home = os.environ.get("DRIVEGALLERY_HOME")
    data_dir = Path(home) if home else get_app_dir() / DATA_DIR_NAME
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir


def get_storage_path() -> Path:
    """Get path to the local key-value store."""
    return get_data_dir() / "storage.json"


def get_settings_path() -> Path:
    """Get path to the optional settings file."""
    return get_data_dir() / "settings.json"


def get_logs_dir() -> Path:
    """Get the session log directory, creating it if needed."""
    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(exist_ok=True)
    return logs_dir
