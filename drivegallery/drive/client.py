"""
Google Drive API client for Drive Gallery.

Handles all listing/metadata HTTP interactions with the Google Drive API.
Does NOT download file content (see ArchiveExporter for that).
"""

import asyncio
import ssl
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional

import aiohttp

from ..core.cancel import CancelToken, check_cancelled
from ..core.constants import FOLDER_MIME, IMAGE_MIME_PREFIX
from ..core.logging import debug_log
from ..core.paths import get_certifi_ssl_context
from .errors import NetworkError, error_from_response, is_retryable_status
from .models import RemoteItem


@dataclass
class DriveClientConfig:
    """Configuration for DriveClient."""
    api_key: str
    timeout: int = 60
    max_retries: int = 3          # additional attempts after the first
    initial_backoff: float = 1.0  # seconds; doubles after each retry
    page_size: int = 1000


@dataclass(frozen=True)
class ListPage:
    """One page of a files.list response."""
    items: list
    next_page_token: Optional[str] = None


def quote_id(value: str) -> str:
    """Quote a value for use inside a Drive query string literal."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def children_query(
    parent_id: str,
    folders_only: bool = False,
    images_only: bool = False,
) -> str:
    """
    Build a query for the non-trashed children of a folder.

    Args:
        parent_id: Folder whose children to list
        folders_only: Restrict to sub-folders
        images_only: Restrict to image files
    """
    clauses = [f"{quote_id(parent_id)} in parents", "trashed = false"]
    if folders_only:
        clauses.append(f"mimeType = '{FOLDER_MIME}'")
    if images_only:
        clauses.append(f"mimeType contains '{IMAGE_MIME_PREFIX}'")
    return " and ".join(clauses)


class DriveClient:
    """
    Async Google Drive API client.

    Every request is retried on network failure, HTTP 429 and 5xx with
    exponential backoff. Other failures surface immediately as typed errors.
    """

    API_BASE = "https://www.googleapis.com/drive/v3"
    API_FILES = f"{API_BASE}/files"

    ITEM_FIELDS = (
        "id,name,mimeType,thumbnailLink,iconLink,webViewLink,webContentLink,"
        "modifiedTime,createdTime,size,imageMediaMetadata"
    )
    LIST_FIELDS = f"nextPageToken, files({ITEM_FIELDS})"
    FOLDER_LIST_FIELDS = "nextPageToken, files(id,name,mimeType,webViewLink,iconLink,modifiedTime,createdTime)"
    COVER_FIELDS = "files(id,mimeType,thumbnailLink,webViewLink,createdTime)"

    def __init__(
        self,
        config: DriveClientConfig,
        session: Optional[aiohttp.ClientSession] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        """
        Initialize the Drive client.

        Args:
            config: Client configuration
            session: Optional shared aiohttp session (not closed by this client)
            sleep: Backoff sleep coroutine (defaults to asyncio.sleep)
        """
        self.config = config
        self._session = session
        self._owns_session = session is None
        self._sleep = sleep or asyncio.sleep
        self._api_calls = 0

    async def __aenter__(self) -> "DriveClient":
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    @property
    def api_calls(self) -> int:
        """Total API calls made by this client (retries included)."""
        return self._api_calls

    async def close(self):
        """Close the HTTP session if this client created it."""
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    def _get_params(self, **kwargs) -> dict:
        """Build request params with API key; None values are dropped."""
        params = {
            "key": self.config.api_key,
            "supportsAllDrives": "true",
            "includeItemsFromAllDrives": "true",
            "spaces": "drive",
        }
        params.update({k: v for k, v in kwargs.items() if v is not None})
        return params

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            ssl_context = ssl.create_default_context(cafile=get_certifi_ssl_context())
            connector = aiohttp.TCPConnector(
                limit=64,
                ttl_dns_cache=300,
                keepalive_timeout=30,
                ssl=ssl_context,
            )
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.config.timeout),
                connector=connector,
            )
            self._owns_session = True
        return self._session

    async def _send(self, url: str, params: dict) -> tuple[int, Any]:
        """Issue one GET. Returns (status, parsed JSON body or None)."""
        session = self._get_session()
        async with session.get(url, params=params) as response:
            try:
                payload = await response.json(content_type=None)
            except (aiohttp.ContentTypeError, ValueError):
                payload = None
            return response.status, payload

    async def _request_json(self, url: str, params: dict, cancel: Optional[CancelToken] = None) -> Any:
        """Make a request with retry logic."""
        delay = self.config.initial_backoff
        attempts = self.config.max_retries + 1

        for attempt in range(attempts):
            check_cancelled(cancel)
            is_last = attempt == attempts - 1

            try:
                self._api_calls += 1
                status, payload = await self._send(url, params)
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                if is_last:
                    raise NetworkError(f"Network error: {e or type(e).__name__}") from e
                debug_log(f"Drive request failed ({type(e).__name__}), retrying in {delay:.0f}s")
                await self._sleep(delay)
                delay *= 2
                continue

            if 200 <= status < 300:
                return payload if payload is not None else {}

            if is_retryable_status(status) and not is_last:
                debug_log(f"Drive request got HTTP {status}, retrying in {delay:.0f}s")
                await self._sleep(delay)
                delay *= 2
                continue

            raise error_from_response(status, payload)

    # =========================================================================
    # Generic list / get
    # =========================================================================

    async def list(
        self,
        query: str,
        order_by: Optional[str] = None,
        fields: Optional[str] = None,
        page_size: Optional[int] = None,
        page_token: Optional[str] = None,
        cancel: Optional[CancelToken] = None,
    ) -> ListPage:
        """
        Fetch a single page of a files.list query.

        Returns:
            ListPage with parsed items and the cursor for the next page (if any)
        """
        params = self._get_params(
            q=query,
            fields=fields or self.LIST_FIELDS,
            orderBy=order_by,
            pageSize=page_size or self.config.page_size,
            pageToken=page_token,
        )
        data = await self._request_json(self.API_FILES, params, cancel)
        items = [RemoteItem.from_api(f) for f in data.get("files", [])]
        return ListPage(items=items, next_page_token=data.get("nextPageToken") or None)

    async def list_all(
        self,
        query: str,
        order_by: Optional[str] = None,
        fields: Optional[str] = None,
        page_size: Optional[int] = None,
        cancel: Optional[CancelToken] = None,
    ) -> List[RemoteItem]:
        """
        Follow pagination until the listing is exhausted.

        The cancel token is checked before every page fetch; a cancelled
        listing raises OperationCancelled rather than returning partial results.
        """
        all_items: List[RemoteItem] = []
        page_token = None
        page_count = 0

        while True:
            check_cancelled(cancel)
            page = await self.list(
                query,
                order_by=order_by,
                fields=fields,
                page_size=page_size or self.config.page_size,
                page_token=page_token,
                cancel=cancel,
            )
            page_count += 1
            all_items.extend(page.items)

            if not page.next_page_token:
                break
            page_token = page.next_page_token

        debug_log(f"Listed {len(all_items)} items from {page_count} pages")
        return all_items

    async def get(
        self,
        file_id: str,
        fields: Optional[str] = None,
        cancel: Optional[CancelToken] = None,
    ) -> RemoteItem:
        """Get metadata for a single file or folder."""
        params = self._get_params(fields=fields or self.ITEM_FIELDS)
        data = await self._request_json(f"{self.API_FILES}/{file_id}", params, cancel)
        return RemoteItem.from_api(data)

    # =========================================================================
    # Gallery queries
    # =========================================================================

    async def list_folders(self, parent_id: str, cancel: Optional[CancelToken] = None) -> List[RemoteItem]:
        """List the sub-folders of a folder, ordered by name."""
        return await self.list_all(
            children_query(parent_id, folders_only=True),
            order_by="name",
            fields=self.FOLDER_LIST_FIELDS,
            cancel=cancel,
        )

    async def list_children(self, folder_id: str, cancel: Optional[CancelToken] = None) -> List[RemoteItem]:
        """List every non-trashed child of a folder, newest first."""
        return await self.list_all(
            children_query(folder_id),
            order_by="createdTime desc",
            cancel=cancel,
        )

    async def cover_photo(self, folder_id: str, cancel: Optional[CancelToken] = None) -> Optional[RemoteItem]:
        """Get the most recently created image directly inside a folder, if any."""
        page = await self.list(
            children_query(folder_id, images_only=True),
            order_by="createdTime desc",
            fields=self.COVER_FIELDS,
            page_size=1,
            cancel=cancel,
        )
        return page.items[0] if page.items else None

    async def latest_modified_time(self, folder_id: str, cancel: Optional[CancelToken] = None) -> Optional[str]:
        """Get the newest modification timestamp among a folder's children."""
        page = await self.list(
            children_query(folder_id),
            order_by="modifiedTime desc",
            fields="files(id,modifiedTime)",
            page_size=1,
            cancel=cancel,
        )
        return page.items[0].modified_time if page.items else None
