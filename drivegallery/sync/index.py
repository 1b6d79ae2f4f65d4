"""
Global search index for Drive Gallery.

Walks every album sequentially and flattens their images into one
collection tagged with the owning album, for whole-gallery search.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..core.cancel import CancelToken, OperationCancelled, check_cancelled
from ..core.logging import debug_log
from ..core.progress import Progress, ProgressCallback
from ..drive.models import RemoteItem
from .albums import AlbumCache, AlbumList, LoadStatus


@dataclass(frozen=True)
class IndexedItem(RemoteItem):
    """A leaf item tagged with the album it was found in."""
    album_id: str = ""
    album_name: str = ""

    @classmethod
    def tag(cls, item: RemoteItem, album: RemoteItem) -> "IndexedItem":
        return cls(**item.to_dict(), album_id=album.id, album_name=album.name)


class IndexStatus(str, Enum):
    IDLE = "idle"
    BUILDING = "building"
    READY = "ready"
    ERROR = "error"


@dataclass(frozen=True)
class SkippedFolder:
    folder_id: str
    name: str
    error: str


@dataclass(frozen=True)
class IndexReport:
    """Outcome of a build. Skipped folders mean the index is only best-effort complete."""
    total_folders: int
    item_count: int
    skipped: tuple = ()

    @property
    def partial_failure(self) -> bool:
        return bool(self.skipped)


class GlobalIndexBuilder:
    """
    Builds the flat cross-album index.

    Builds once and stays ready; a forced build refetches the album list and
    every album, then replaces the index wholesale.
    """

    def __init__(self, albums: AlbumList, album_cache: AlbumCache):
        self._albums = albums
        self._cache = album_cache
        self.status = IndexStatus.IDLE
        self.items: tuple = ()
        self.progress: Optional[Progress] = None
        self.error: Optional[str] = None
        self.report: Optional[IndexReport] = None
        self._latest_token = 0
        self._in_flight: set[int] = set()
        self._issued = 0

    async def build(
        self,
        force: bool = False,
        on_progress: Optional[ProgressCallback] = None,
        cancel: Optional[CancelToken] = None,
    ) -> Optional[IndexReport]:
        """
        Build the index (no-op when ready, unless forced).

        Albums are loaded one at a time to bound load on the API. A failing
        album is logged and skipped. Progress is published after each album.

        Returns:
            The IndexReport of the build that produced the current index, or
            None if a build is already running
        """
        if not force and self.status == IndexStatus.READY:
            return self.report
        if not force and self.status == IndexStatus.BUILDING:
            return None

        self._issued += 1
        token = self._latest_token = self._issued
        self._in_flight.add(token)
        previous_status = self.status
        self.status = IndexStatus.BUILDING
        self.error = None

        try:
            return await self._build(token, force, on_progress, cancel)
        except OperationCancelled:
            self._in_flight.discard(token)
            if token == self._latest_token:
                self._hand_back(previous_status)
            raise
        finally:
            self._in_flight.discard(token)

    def _hand_back(self, previous_status: IndexStatus):
        """Undo a cancelled build that held the latest token."""
        if self._in_flight:
            # A superseded build is still walking albums; let it commit
            self._latest_token = max(self._in_flight)
            return
        self.progress = None
        if previous_status == IndexStatus.BUILDING:
            self.status = IndexStatus.READY if self.report else IndexStatus.IDLE
        else:
            self.status = previous_status

    async def _build(
        self,
        token: int,
        force: bool,
        on_progress: Optional[ProgressCallback],
        cancel: Optional[CancelToken],
    ) -> Optional[IndexReport]:
        try:
            if force or self._albums.status != LoadStatus.READY:
                # A plain load during someone else's load returns a partial snapshot
                refresh = force or self._albums.status == LoadStatus.LOADING
                albums = await self._albums.load(force=refresh, cancel=cancel)
            else:
                albums = self._albums.albums
        except OperationCancelled:
            raise
        except Exception as e:
            if token == self._latest_token:
                self.status = IndexStatus.ERROR
                self.error = f"Could not load albums: {e}"
            raise

        if token != self._latest_token:
            debug_log("Index build superseded while loading albums")
            return None

        total = len(albums)
        collected: list[IndexedItem] = []
        skipped: list[SkippedFolder] = []
        self.progress = Progress(0, total)

        for done, album in enumerate(albums, 1):
            check_cancelled(cancel)
            try:
                items = await self._cache.load(album.id, force=force, cancel=cancel)
            except OperationCancelled:
                raise
            except Exception as e:
                debug_log(f"Index: skipping album {album.name} ({album.id}): {e}")
                skipped.append(SkippedFolder(album.id, album.name, str(e)))
            else:
                collected.extend(IndexedItem.tag(item, album) for item in items if not item.is_folder)

            if token != self._latest_token:
                debug_log("Index build superseded by a newer build")
                return None

            self.progress = Progress(done, total)
            if on_progress:
                on_progress(self.progress)

        if token != self._latest_token:
            debug_log("Index build superseded by a newer build")
            return None

        report = IndexReport(total_folders=total, item_count=len(collected), skipped=tuple(skipped))
        if report.partial_failure:
            debug_log(f"Index built with {len(skipped)} of {total} albums skipped")

        self.items = tuple(collected)
        self.report = report
        self.status = IndexStatus.READY
        return report
