"""
Folder caches for Drive Gallery.

AlbumList holds the top-level folders (albums) under the root folder.
AlbumCache holds the resolved children of each album, one entry per folder,
with an idle/loading/ready/error lifecycle.

Both are single-writer per key: each load is tagged with a monotonically
increasing token and only the latest load may commit. A cancelled load that
superseded one still in flight hands the key back to that older load.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..core.cancel import CancelToken, OperationCancelled
from ..core.constants import ALBUMS_STORAGE_KEY
from ..core.logging import debug_log
from ..drive.client import DriveClient
from ..drive.models import RemoteItem
from .storage import KeyValueStore


class LoadStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


@dataclass(frozen=True)
class AlbumEntry:
    """Cache record for one folder. Replaced wholesale, never mutated."""
    status: LoadStatus = LoadStatus.IDLE
    items: tuple = ()
    error: Optional[str] = None
    token: int = 0


_IDLE = AlbumEntry()


class AlbumCache:
    """
    Per-folder item cache.

    Lifecycle per folder: idle -> loading -> ready | error; ready/error go
    back to loading only on a forced refresh. A second non-forced load while
    one is in flight returns the current (possibly stale) items instead of
    issuing another request.
    """

    def __init__(self, client: DriveClient):
        self._client = client
        self._entries: dict[str, AlbumEntry] = {}
        self._latest_token: dict[str, int] = {}
        self._in_flight: dict[str, set[int]] = {}
        self._issued = 0

    def get(self, folder_id: str) -> AlbumEntry:
        """Current entry for a folder (idle if never loaded)."""
        return self._entries.get(folder_id, _IDLE)

    def items(self, folder_id: str) -> tuple:
        return self.get(folder_id).items

    def snapshot(self) -> dict[str, AlbumEntry]:
        """Copy of all entries (safe to iterate while loads run)."""
        return dict(self._entries)

    def _is_latest(self, folder_id: str, token: int) -> bool:
        return self._latest_token.get(folder_id) == token

    def _hand_back(self, folder_id: str, previous: AlbumEntry):
        """Undo a cancelled load that held the latest token."""
        running = self._in_flight.get(folder_id)
        if running:
            # The superseded load is still fetching; let it commit
            token = max(running)
            self._latest_token[folder_id] = token
            self._entries[folder_id] = AlbumEntry(LoadStatus.LOADING, previous.items, None, token)
        elif previous.status == LoadStatus.LOADING:
            status = LoadStatus.READY if previous.items else LoadStatus.IDLE
            self._entries[folder_id] = AlbumEntry(status, previous.items, None, previous.token)
        else:
            self._entries[folder_id] = previous

    async def load(
        self,
        folder_id: str,
        force: bool = False,
        cancel: Optional[CancelToken] = None,
    ) -> tuple:
        """
        Load a folder's children (not trashed, newest first).

        Args:
            folder_id: Folder to load
            force: Refetch even if ready, and supersede any in-flight load
            cancel: Optional cancellation token for the pagination loop

        Returns:
            Tuple of RemoteItem

        Raises:
            DriveApiError on failure (the error is also recorded on the entry,
            which keeps its previous items), OperationCancelled if cancelled
        """
        previous = self.get(folder_id)
        if not force and previous.status in (LoadStatus.READY, LoadStatus.LOADING):
            return previous.items

        # No await between the check above and claiming the token below
        self._issued += 1
        token = self._issued
        self._latest_token[folder_id] = token
        running = self._in_flight.setdefault(folder_id, set())
        running.add(token)
        self._entries[folder_id] = AlbumEntry(LoadStatus.LOADING, previous.items, None, token)

        try:
            files = await self._client.list_children(folder_id, cancel=cancel)
        except OperationCancelled:
            running.discard(token)
            if self._is_latest(folder_id, token):
                self._hand_back(folder_id, previous)
            raise
        except Exception as e:
            if self._is_latest(folder_id, token):
                self._entries[folder_id] = AlbumEntry(LoadStatus.ERROR, previous.items, str(e), token)
            else:
                debug_log(f"Ignoring stale failure for folder {folder_id}: {e}")
            raise
        finally:
            running.discard(token)

        items = tuple(files)
        if not self._is_latest(folder_id, token):
            debug_log(f"Discarding stale listing for folder {folder_id} (token {token})")
            return items

        self._entries[folder_id] = AlbumEntry(LoadStatus.READY, items, None, token)
        return items


class AlbumList:
    """
    Top-level folders under the gallery root, ordered by name.

    The in-memory list and its persisted copy are updated in two separate
    steps: load() commits in memory, save() serializes the current snapshot.
    """

    def __init__(self, client: DriveClient, root_folder_id: str, store: Optional[KeyValueStore] = None):
        self._client = client
        self.root_folder_id = root_folder_id
        self._store = store
        self.status = LoadStatus.IDLE
        self.albums: tuple = ()
        self.error: Optional[str] = None
        self._latest_token = 0
        self._in_flight: set[int] = set()
        self._issued = 0

    def restore(self) -> bool:
        """
        Restore a persisted album list. Returns True if one was restored.

        A non-empty persisted list comes back as ready so startup can render
        immediately; a forced load refreshes it.
        """
        if self._store is None:
            return False
        data = self._store.get(ALBUMS_STORAGE_KEY)
        if not isinstance(data, dict) or data.get("root") != self.root_folder_id:
            return False
        try:
            albums = tuple(RemoteItem.from_dict(d) for d in data.get("albums", []))
        except (TypeError, KeyError) as e:
            debug_log(f"Ignoring unreadable persisted album list: {e}")
            return False
        if not albums:
            return False
        self.albums = albums
        self.status = LoadStatus.READY
        return True

    def save(self):
        """Persist the current album list snapshot."""
        if self._store is None:
            return
        self._store.set(ALBUMS_STORAGE_KEY, {
            "root": self.root_folder_id,
            "albums": [a.to_dict() for a in self.albums],
        })

    def find(self, folder_id: str) -> Optional[RemoteItem]:
        """Album metadata lookup without a network call."""
        for album in self.albums:
            if album.id == folder_id:
                return album
        return None

    async def load(self, force: bool = False, cancel: Optional[CancelToken] = None) -> tuple:
        """Load the album list (no-op if already ready and non-empty, unless forced)."""
        if not force and self.status == LoadStatus.READY and self.albums:
            return self.albums
        if not force and self.status == LoadStatus.LOADING:
            return self.albums

        self._issued += 1
        token = self._latest_token = self._issued
        self._in_flight.add(token)
        previous_status = self.status
        self.status = LoadStatus.LOADING
        self.error = None

        try:
            folders = await self._client.list_folders(self.root_folder_id, cancel=cancel)
        except OperationCancelled:
            self._in_flight.discard(token)
            if token == self._latest_token:
                if self._in_flight:
                    self._latest_token = max(self._in_flight)
                elif previous_status == LoadStatus.LOADING:
                    self.status = LoadStatus.READY if self.albums else LoadStatus.IDLE
                else:
                    self.status = previous_status
            raise
        except Exception as e:
            if token == self._latest_token:
                self.status = LoadStatus.ERROR
                self.error = str(e)
            raise
        finally:
            self._in_flight.discard(token)

        albums = tuple(folders)
        if token != self._latest_token:
            debug_log("Discarding stale album list")
            return albums

        self.albums = albums
        self.status = LoadStatus.READY
        self.save()
        return albums
