"""
Configuration for Drive Gallery.

The API credential and root folder come from the environment. Optional
tunables live in settings.json inside the data directory.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ..core.constants import (
    ARCHIVE_COMPRESSION_LEVEL,
    BULK_COVER_BATCH_SIZE,
    DEFAULT_ARCHIVE_NAME,
    VISIBLE_COVER_BATCH_SIZE,
)
from ..drive.client import DriveClientConfig

API_KEY_ENV = "GOOGLE_API_KEY"
ROOT_FOLDER_ENV = "ROOT_FOLDER_ID"

# settings.json keys that may override defaults (never the credential)
TUNABLE_KEYS = (
    "cover_batch_size",
    "visible_cover_batch_size",
    "compression_level",
    "archive_name",
    "page_size",
)


@dataclass
class GalleryConfig:
    """Startup configuration. Missing credential or root folder = degraded mode."""
    api_key: str = ""
    root_folder_id: str = ""
    cover_batch_size: int = BULK_COVER_BATCH_SIZE
    visible_cover_batch_size: int = VISIBLE_COVER_BATCH_SIZE
    compression_level: int = ARCHIVE_COMPRESSION_LEVEL
    archive_name: str = DEFAULT_ARCHIVE_NAME
    page_size: int = 1000
    data_dir: Optional[Path] = None
    warnings: list[str] = field(default_factory=list)

    @classmethod
    def from_env(cls, settings_path: Optional[Path] = None, environ: Optional[dict] = None) -> "GalleryConfig":
        """
        Load configuration from the environment plus optional settings.json.

        Args:
            settings_path: settings.json to read tunables from (skipped if None or absent)
            environ: Environment mapping (defaults to os.environ)
        """
        env = os.environ if environ is None else environ
        config = cls(
            api_key=env.get(API_KEY_ENV, "").strip(),
            root_folder_id=env.get(ROOT_FOLDER_ENV, "").strip(),
        )
        if settings_path is not None:
            config.data_dir = settings_path.parent
            config._apply_settings_file(settings_path)
        return config

    def _apply_settings_file(self, path: Path):
        if not path.exists():
            return
        try:
            with open(path) as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            self.warnings.append(f"Could not load {path.name}: {e}")
            return

        for key in TUNABLE_KEYS:
            if key not in data:
                continue
            expected = type(getattr(self, key))
            value = data[key]
            if not isinstance(value, expected) or isinstance(value, bool):
                self.warnings.append(f"Ignoring {key}: expected {expected.__name__}")
                continue
            if expected is int and value < 1:
                self.warnings.append(f"Ignoring {key}: must be positive")
                continue
            setattr(self, key, value)

        # zlib only accepts 0-9
        self.compression_level = min(self.compression_level, 9)

    def missing(self) -> list[str]:
        """Names of required values that are not set."""
        missing = []
        if not self.api_key:
            missing.append(API_KEY_ENV)
        if not self.root_folder_id:
            missing.append(ROOT_FOLDER_ENV)
        return missing

    @property
    def is_configured(self) -> bool:
        return not self.missing()

    def client_config(self) -> DriveClientConfig:
        return DriveClientConfig(api_key=self.api_key, page_size=self.page_size)

    def storage_path(self) -> Optional[Path]:
        """storage.json beside the settings file, or None for the default location."""
        if self.data_dir is None:
            return None
        return self.data_dir / "storage.json"
