"""
Album cover resolution for Drive Gallery.

Each album's cover is the thumbnail of its most recently created image.
Resolved covers are cached with a timestamp and persisted; entries older
than the TTL are treated as missing and resolved again.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from ..core.cancel import CancelToken, OperationCancelled, check_cancelled
from ..core.constants import BULK_COVER_BATCH_SIZE, COVER_CACHE_TTL, COVER_THUMBNAIL_SIZE, COVERS_STORAGE_KEY
from ..core.formatting import sized_thumbnail
from ..core.logging import debug_log
from ..drive.client import DriveClient
from .storage import KeyValueStore


@dataclass(frozen=True)
class CoverEntry:
    """Resolved cover for one folder. An empty url means the folder has no images."""
    url: str
    updated_at: float  # epoch seconds


class CoverResolver:
    """
    Resolves one cover thumbnail per folder with bounded concurrency.

    At most `batch_size` cover queries are in flight at once across all
    concurrent resolve() calls. Callers that want lower latency for a small,
    visible set pass a smaller batch size to resolve().
    """

    def __init__(
        self,
        client: DriveClient,
        store: Optional[KeyValueStore] = None,
        batch_size: int = BULK_COVER_BATCH_SIZE,
        ttl: float = COVER_CACHE_TTL,
        thumbnail_size: int = COVER_THUMBNAIL_SIZE,
        clock: Callable[[], float] = time.time,
    ):
        self._client = client
        self._store = store
        self.batch_size = batch_size
        self.ttl = ttl
        self.thumbnail_size = thumbnail_size
        self._clock = clock
        self._entries: dict[str, CoverEntry] = {}
        self._in_flight: set[str] = set()
        self._limit = asyncio.Semaphore(batch_size)

    # =========================================================================
    # Cache state
    # =========================================================================

    def _is_live(self, entry: Optional[CoverEntry], now: float) -> bool:
        return entry is not None and now - entry.updated_at < self.ttl

    def lookup(self, folder_id: str) -> Optional[str]:
        """
        Cached cover URL for a folder.

        Returns:
            The URL, "" if the folder is known to have no images, or None if
            unknown or expired
        """
        entry = self._entries.get(folder_id)
        if not self._is_live(entry, self._clock()):
            return None
        return entry.url

    def covers(self) -> dict[str, str]:
        """All live, non-empty covers keyed by folder id."""
        now = self._clock()
        return {fid: e.url for fid, e in self._entries.items() if e.url and self._is_live(e, now)}

    def needs_resolution(self, folder_ids: Iterable[str]) -> list[str]:
        """Folder ids (deduplicated, order kept) with no live cache entry."""
        now = self._clock()
        return [fid for fid in dict.fromkeys(folder_ids) if not self._is_live(self._entries.get(fid), now)]

    def commit(self, entries: dict[str, CoverEntry]):
        """Merge resolved entries into the in-memory cache."""
        merged = dict(self._entries)
        merged.update(entries)
        self._entries = merged

    # =========================================================================
    # Persistence
    # =========================================================================

    def load(self) -> int:
        """
        Load persisted covers, dropping expired ones.

        Returns:
            Number of expired entries purged
        """
        if self._store is None:
            return 0
        raw = self._store.get(COVERS_STORAGE_KEY) or {}
        now = self._clock()
        live: dict[str, CoverEntry] = {}
        purged = 0
        for folder_id, data in raw.items():
            try:
                entry = CoverEntry(url=str(data["url"]), updated_at=float(data["updated_at"]))
            except (KeyError, TypeError, ValueError):
                purged += 1
                continue
            if self._is_live(entry, now):
                live[folder_id] = entry
            else:
                purged += 1

        self._entries = live
        if purged:
            debug_log(f"Purged {purged} expired cover cache entries")
            self.save()
        return purged

    def save(self):
        """Serialize the current in-memory snapshot to the store."""
        if self._store is None:
            return
        self._store.set(COVERS_STORAGE_KEY, {
            fid: {"url": e.url, "updated_at": e.updated_at}
            for fid, e in self._entries.items()
        })

    # =========================================================================
    # Resolution
    # =========================================================================

    async def _resolve_one(self, folder_id: str) -> Optional[CoverEntry]:
        async with self._limit:
            try:
                photo = await self._client.cover_photo(folder_id)
            except OperationCancelled:
                raise
            except Exception as e:
                debug_log(f"Failed to resolve cover for {folder_id}: {e}")
                return None

        url = ""
        if photo is not None and photo.thumbnail_link:
            url = sized_thumbnail(photo.thumbnail_link, self.thumbnail_size)
        return CoverEntry(url=url, updated_at=self._clock())

    async def resolve(
        self,
        folder_ids: Iterable[str],
        batch_size: Optional[int] = None,
        cancel: Optional[CancelToken] = None,
    ) -> int:
        """
        Resolve covers for every folder without a live cache entry.

        Folders are queried in concurrent batches; each batch is committed
        and persisted as one merge. A failing folder is logged and skipped.

        Args:
            folder_ids: Folders to resolve
            batch_size: Batch width for this call (capped at the resolver's limit)
            cancel: Checked before each batch

        Returns:
            Number of folders resolved (including ones found to have no images)
        """
        width = min(batch_size or self.batch_size, self.batch_size)
        pending = [fid for fid in self.needs_resolution(folder_ids) if fid not in self._in_flight]
        if not pending:
            return 0

        start = time.monotonic()
        resolved = 0
        for i in range(0, len(pending), width):
            check_cancelled(cancel)
            batch = pending[i:i + width]
            self._in_flight.update(batch)
            try:
                results = await asyncio.gather(*(self._resolve_one(fid) for fid in batch))
            finally:
                self._in_flight.difference_update(batch)

            new_entries = {fid: entry for fid, entry in zip(batch, results) if entry is not None}
            if new_entries:
                self.commit(new_entries)
                self.save()
                resolved += len(new_entries)

        debug_log(f"Resolved {resolved}/{len(pending)} covers in {time.monotonic() - start:.2f}s")
        return resolved
