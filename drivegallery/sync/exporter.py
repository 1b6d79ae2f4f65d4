"""
Archive export for Drive Gallery.

Downloads a selection of files one at a time and packs them into a ZIP.
Uses asyncio + aiohttp for fetching; the archive is assembled in memory and
only written to its destination once it is complete.
"""

import asyncio
import io
import ssl
import time
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Sequence

import aiohttp

from ..core.cancel import CancelToken, check_cancelled
from ..core.constants import ARCHIVE_COMPRESSION_LEVEL, DEFAULT_ARCHIVE_NAME, DEFAULT_LINKS_NAME
from ..core.formatting import UniqueNamer, format_size, sanitize_entry_name
from ..core.logging import debug_log
from ..core.paths import get_certifi_ssl_context
from ..core.progress import Progress, ProgressCallback
from ..drive.errors import ExportError, error_from_response
from ..drive.models import RemoteItem
from ..drive.urls import api_download_url, download_url

# Bytes handed to the compressor between progress reports
COMPRESS_CHUNK_SIZE = 256 * 1024


@dataclass
class ExportResult:
    """A finished archive handed to the caller."""
    path: Path
    file_count: int
    bytes_fetched: int
    archive_size: int
    elapsed: float


class ArchiveExporter:
    """
    Sequential fetch-then-compress exporter.

    Cancellation is checked before every file fetch and once more before the
    compression phase. A cancelled or failed export never produces a file.
    """

    def __init__(
        self,
        api_key: str,
        compression_level: int = ARCHIVE_COMPRESSION_LEVEL,
        timeout: tuple[int, int] = (10, 120),
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.api_key = api_key
        self.compression_level = compression_level
        self.timeout = aiohttp.ClientTimeout(connect=timeout[0], sock_read=timeout[1])
        self._session = session

    async def _fetch_bytes(self, session: aiohttp.ClientSession, item: RemoteItem) -> bytes:
        """Fetch one file's content through the authorized media URL."""
        url = api_download_url(item.id, self.api_key)
        try:
            async with session.get(url) as response:
                if response.status >= 400:
                    try:
                        payload = await response.json(content_type=None)
                    except (aiohttp.ContentTypeError, ValueError):
                        payload = None
                    cause = error_from_response(response.status, payload)
                    raise ExportError(
                        f"{item.name} could not be downloaded (HTTP {response.status}): {cause}",
                        item_name=item.name,
                        status=response.status,
                    ) from cause
                return await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ExportError(f"{item.name} could not be downloaded: {e}", item_name=item.name) from e

    def _open_session(self) -> aiohttp.ClientSession:
        ssl_context = ssl.create_default_context(cafile=get_certifi_ssl_context())
        connector = aiohttp.TCPConnector(limit=4, ttl_dns_cache=300, ssl=ssl_context)
        return aiohttp.ClientSession(timeout=self.timeout, connector=connector)

    async def _fetch_all(
        self,
        items: Sequence[RemoteItem],
        cancel: Optional[CancelToken],
        on_file_progress: Optional[ProgressCallback],
    ) -> list[tuple[str, bytes]]:
        """Fetch every item in selection order. Returns (entry_name, data) pairs."""
        namer = UniqueNamer()
        staged: list[tuple[str, bytes]] = []
        total = len(items)

        session = self._session or self._open_session()
        try:
            for done, item in enumerate(items, 1):
                check_cancelled(cancel)
                data = await self._fetch_bytes(session, item)
                staged.append((namer.claim(item.name), data))
                if on_file_progress:
                    on_file_progress(Progress(done, total))
        finally:
            if self._session is None:
                await session.close()
        return staged

    def build_archive(
        self,
        staged: Sequence[tuple[str, bytes]],
        on_archive_progress: Optional[Callable[[float], None]] = None,
    ) -> bytes:
        """
        Compress staged files into a ZIP held in memory.

        Progress is reported as a percentage of input bytes fed to the
        compressor.
        """
        total = sum(len(data) for _, data in staged) or 1
        fed = 0
        buffer = io.BytesIO()
        try:
            with zipfile.ZipFile(
                buffer, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=self.compression_level
            ) as zf:
                for name, data in staged:
                    with zf.open(name, "w") as entry:
                        view = memoryview(data)
                        for offset in range(0, len(data), COMPRESS_CHUNK_SIZE):
                            chunk = view[offset:offset + COMPRESS_CHUNK_SIZE]
                            entry.write(chunk)
                            fed += len(chunk)
                            if on_archive_progress:
                                on_archive_progress(100.0 * fed / total)
            if on_archive_progress:
                on_archive_progress(100.0)
            return buffer.getvalue()
        finally:
            buffer.close()

    async def export(
        self,
        items: Sequence[RemoteItem],
        dest_dir: Path,
        filename: Optional[str] = None,
        cancel: Optional[CancelToken] = None,
        on_file_progress: Optional[ProgressCallback] = None,
        on_archive_progress: Optional[Callable[[float], None]] = None,
    ) -> ExportResult:
        """
        Export items as a ZIP archive in dest_dir.

        Args:
            items: Selected items, in the order they should be fetched
            dest_dir: Directory the archive is written to
            filename: Archive file name (default gallery.zip)
            cancel: Checked before each fetch and before compression
            on_file_progress: Called with Progress(done, total) after each fetch
            on_archive_progress: Called with a 0-100 percentage while compressing

        Raises:
            OperationCancelled if cancelled, ExportError on the first failed
            fetch. Nothing is written in either case.
        """
        start = time.time()
        staged = await self._fetch_all(items, cancel, on_file_progress)
        check_cancelled(cancel)

        archive = self.build_archive(staged, on_archive_progress)

        name = sanitize_entry_name(filename or DEFAULT_ARCHIVE_NAME)
        if not name.lower().endswith(".zip"):
            name += ".zip"
        path = write_atomic(Path(dest_dir) / name, archive)

        bytes_fetched = sum(len(data) for _, data in staged)
        staged.clear()
        debug_log(f"Exported {len(items)} files ({format_size(bytes_fetched)}) to {path}")
        return ExportResult(
            path=path,
            file_count=len(items),
            bytes_fetched=bytes_fetched,
            archive_size=len(archive),
            elapsed=time.time() - start,
        )


def write_atomic(path: Path, data: bytes) -> Path:
    """Atomic write: write to .tmp file, then rename."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_file = path.with_name(path.name + ".tmp")
    try:
        with open(tmp_file, "wb") as f:
            f.write(data)
        tmp_file.replace(path)
    finally:
        if tmp_file.exists():
            tmp_file.unlink()
    return path


def export_links(items: Sequence[RemoteItem], path: Optional[Path] = None) -> Path:
    """Write a tab-separated `name<TAB>download url` list for the selection."""
    path = Path(path) if path else Path(DEFAULT_LINKS_NAME)
    lines = [f"{item.name}\t{download_url(item)}" for item in items]
    return write_atomic(path, "\n".join(lines).encode("utf-8"))
