"""
Gallery facade for Drive Gallery.

Wires the client, caches, index and exporter together behind the narrow set
of operations a front end calls. Nothing outside this package mutates the
caches directly.
"""

from pathlib import Path
from typing import Callable, Iterable, Optional, Sequence

from ..config import GalleryConfig
from ..core.cancel import CancelToken
from ..core.constants import SEARCH_RESULT_LIMIT
from ..core.progress import ProgressCallback
from ..drive.client import DriveClient
from ..drive.models import RemoteItem
from .albums import AlbumCache, AlbumList
from .covers import CoverResolver
from .exporter import ArchiveExporter, ExportResult, export_links
from .index import GlobalIndexBuilder, IndexReport
from .search import search_index
from .storage import KeyValueStore


class GalleryNotConfigured(Exception):
    """Raised by network operations when the credential or root folder is missing."""

    def __init__(self, missing: list[str]):
        super().__init__(f"Gallery is not configured (missing: {', '.join(missing)})")
        self.missing = missing


class Gallery:
    """
    One gallery rooted at a Drive folder.

    Persisted state (album list, cover cache) is read on construction, so a
    degraded (unconfigured) gallery can still show what it had cached.
    """

    def __init__(
        self,
        config: GalleryConfig,
        store: Optional[KeyValueStore] = None,
        client: Optional[DriveClient] = None,
    ):
        self.config = config
        self.store = store if store is not None else KeyValueStore(config.storage_path())
        self.client = client or DriveClient(config.client_config())
        self.albums = AlbumList(self.client, config.root_folder_id, self.store)
        self.album_cache = AlbumCache(self.client)
        self.covers = CoverResolver(self.client, self.store, batch_size=config.cover_batch_size)
        self.index = GlobalIndexBuilder(self.albums, self.album_cache)
        self.exporter = ArchiveExporter(config.api_key, compression_level=config.compression_level)

        self.albums.restore()
        self.covers.load()

    async def __aenter__(self) -> "Gallery":
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    async def close(self):
        await self.client.close()

    @property
    def is_configured(self) -> bool:
        return self.config.is_configured

    def _require_config(self):
        missing = self.config.missing()
        if missing:
            raise GalleryNotConfigured(missing)

    # =========================================================================
    # Browsing
    # =========================================================================

    async def load_albums(self, force: bool = False, cancel: Optional[CancelToken] = None) -> tuple:
        self._require_config()
        return await self.albums.load(force=force, cancel=cancel)

    async def load_album_items(
        self,
        folder_id: str,
        force: bool = False,
        cancel: Optional[CancelToken] = None,
    ) -> tuple:
        self._require_config()
        return await self.album_cache.load(folder_id, force=force, cancel=cancel)

    def album_meta(self, folder_id: str) -> Optional[RemoteItem]:
        return self.albums.find(folder_id)

    async def resolve_covers(
        self,
        folder_ids: Optional[Iterable[str]] = None,
        visible: bool = False,
        cancel: Optional[CancelToken] = None,
    ) -> int:
        """
        Resolve album covers.

        Args:
            folder_ids: Folders to resolve (default: every loaded album)
            visible: Use the narrower on-screen batch size for lower latency
        """
        self._require_config()
        if folder_ids is None:
            folder_ids = [album.id for album in self.albums.albums]
        batch_size = self.config.visible_cover_batch_size if visible else self.config.cover_batch_size
        return await self.covers.resolve(folder_ids, batch_size=batch_size, cancel=cancel)

    def cover_url(self, folder_id: str) -> Optional[str]:
        return self.covers.lookup(folder_id)

    # =========================================================================
    # Search
    # =========================================================================

    async def build_index(
        self,
        force: bool = False,
        on_progress: Optional[ProgressCallback] = None,
        cancel: Optional[CancelToken] = None,
    ) -> Optional[IndexReport]:
        self._require_config()
        return await self.index.build(force=force, on_progress=on_progress, cancel=cancel)

    def search(self, query: str, limit: int = SEARCH_RESULT_LIMIT) -> list:
        """Search the global index (empty until build_index() has run)."""
        return search_index(self.index.items, query, limit=limit)

    # =========================================================================
    # Export
    # =========================================================================

    async def export(
        self,
        items: Sequence[RemoteItem],
        dest_dir: Path,
        filename: Optional[str] = None,
        cancel: Optional[CancelToken] = None,
        on_file_progress: Optional[ProgressCallback] = None,
        on_archive_progress: Optional[Callable[[float], None]] = None,
    ) -> ExportResult:
        self._require_config()
        return await self.exporter.export(
            items,
            dest_dir,
            filename=filename or self.config.archive_name,
            cancel=cancel,
            on_file_progress=on_file_progress,
            on_archive_progress=on_archive_progress,
        )

    def export_links(self, items: Sequence[RemoteItem], path: Optional[Path] = None) -> Path:
        return export_links(items, path)
