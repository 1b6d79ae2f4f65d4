"""
Local key-value store for Drive Gallery.

A single JSON document (.drive-gallery/storage.json) holding blobs under
namespaced keys. Survives restarts; every write rewrites the whole file.
"""

import json
from pathlib import Path
from typing import Any, Optional

from ..core.logging import debug_log
from ..core.paths import get_storage_path


class KeyValueStore:
    """
    JSON-file backed blob store.

    Values must be JSON-serializable. Reads hit an in-memory copy loaded on
    first use; writes go through to disk immediately.
    """

    def __init__(self, path: Optional[Path] = None):
        # For production: use centralized paths from paths.py
        # For testing: pass a path inside a temp directory
        self.path = path or get_storage_path()
        self._data: Optional[dict] = None

    def _load(self) -> dict:
        if self._data is not None:
            return self._data
        self._data = {}
        if self.path.exists():
            try:
                with open(self.path) as f:
                    data = json.load(f)
                if isinstance(data, dict):
                    self._data = data
            except (json.JSONDecodeError, IOError) as e:
                debug_log(f"Ignoring unreadable store {self.path}: {e}")
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        return self._load().get(key, default)

    def set(self, key: str, value: Any):
        """Replace the blob under `key` and persist."""
        self._load()[key] = value
        self._write()

    def delete(self, key: str):
        data = self._load()
        if key in data:
            del data[key]
            self._write()

    def keys(self) -> list[str]:
        return list(self._load().keys())

    def _write(self):
        """Atomic write: write to .tmp file, then rename."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_file = self.path.with_suffix(".json.tmp")
        with open(tmp_file, "w") as f:
            json.dump(self._data, f)
        tmp_file.replace(self.path)


class MemoryStore(KeyValueStore):
    """Non-persistent store (used when no data directory is wanted)."""

    def __init__(self):
        self.path = None
        self._data = {}

    def _write(self):
        pass
