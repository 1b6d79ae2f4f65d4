"""Pytest configuration and shared fixtures."""

import asyncio
import re
from urllib.parse import unquote

import pytest

from drivegallery.core.constants import FOLDER_MIME
from drivegallery.drive.client import DriveClient, DriveClientConfig
from drivegallery.sync.storage import MemoryStore

_PARENT_RE = re.compile(r"^'((?:[^'\\]|\\.)*)' in parents")


def error_envelope(status: int, reason: str = "", message: str = "") -> dict:
    """Build a Drive-style JSON error body."""
    return {
        "error": {
            "code": status,
            "message": message or f"HTTP {status}",
            "errors": [{"reason": reason}] if reason else [],
        }
    }


class FakeDrive:
    """
    In-memory stand-in for the Drive files endpoint.

    Plugs into DriveClient._send, so the client's retry, paging and error
    mapping run for real against canned data.
    """

    def __init__(self):
        self.children: dict[str, list[dict]] = {}
        self.files: dict[str, dict] = {}
        self.scripted: dict[str, list] = {}
        self.calls: list[tuple[str, dict]] = []
        self.sleeps: list[float] = []
        self.latency = 0.0
        self.in_flight = 0
        self.max_in_flight = 0

    # -- data builders -------------------------------------------------------

    def _add(self, parent_id: str, entry: dict) -> dict:
        self.children.setdefault(parent_id, []).append(entry)
        self.files[entry["id"]] = entry
        return entry

    def add_folder(self, parent_id: str, folder_id: str, name: str, created: str = "2024-01-01T00:00:00Z") -> dict:
        return self._add(parent_id, {
            "id": folder_id,
            "name": name,
            "mimeType": FOLDER_MIME,
            "createdTime": created,
            "modifiedTime": created,
        })

    def add_image(
        self,
        parent_id: str,
        file_id: str,
        name: str,
        created: str = "2024-01-01T00:00:00Z",
        size: int = 1000,
        mime: str = "image/jpeg",
    ) -> dict:
        return self._add(parent_id, {
            "id": file_id,
            "name": name,
            "mimeType": mime,
            "thumbnailLink": f"https://lh3.example.com/{file_id}=s220",
            "webContentLink": f"https://drive.example.com/uc?id={file_id}",
            "size": str(size),
            "createdTime": created,
            "modifiedTime": created,
        })

    def script(self, key: str, *outcomes):
        """
        Queue outcomes for requests about `key` (a parent or file id).

        Each outcome is an HTTP status (answered with an error envelope), a
        (status, reason) pair, or an exception instance to raise.
        """
        self.scripted.setdefault(key, []).extend(outcomes)

    def calls_for(self, key: str) -> int:
        return sum(1 for url, params in self.calls if self._key(url, params) == key)

    # -- transport -----------------------------------------------------------

    async def sleep(self, delay: float):
        self.sleeps.append(delay)

    @staticmethod
    def _key(url: str, params: dict) -> str:
        if url == DriveClient.API_FILES:
            match = _PARENT_RE.match(params.get("q", ""))
            return match.group(1).replace("\\'", "'") if match else ""
        return unquote(url.rsplit("/", 1)[-1])

    async def send(self, url: str, params: dict):
        self.calls.append((url, dict(params)))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.latency)
            key = self._key(url, params)
            queue = self.scripted.get(key)
            if queue:
                outcome = queue.pop(0)
                if isinstance(outcome, BaseException):
                    raise outcome
                status, reason = outcome if isinstance(outcome, tuple) else (outcome, "")
                return status, error_envelope(status, reason)

            if url == DriveClient.API_FILES:
                return 200, self._list(key, params)
            if key in self.files:
                return 200, self.files[key]
            return 404, error_envelope(404, "notFound", f"File not found: {key}")
        finally:
            self.in_flight -= 1

    def _list(self, parent_id: str, params: dict) -> dict:
        q = params.get("q", "")
        entries = list(self.children.get(parent_id, []))
        if f"mimeType = '{FOLDER_MIME}'" in q:
            entries = [e for e in entries if e["mimeType"] == FOLDER_MIME]
        if "mimeType contains 'image/'" in q:
            entries = [e for e in entries if e["mimeType"].startswith("image/")]

        order = params.get("orderBy", "")
        if order == "name":
            entries.sort(key=lambda e: e["name"])
        elif order:
            field = order.split()[0]
            entries.sort(key=lambda e: e.get(field, ""), reverse=order.endswith("desc"))

        page_size = int(params.get("pageSize", 1000))
        offset = int(params.get("pageToken", 0))
        page = entries[offset:offset + page_size]
        body = {"files": page}
        if offset + page_size < len(entries):
            body["nextPageToken"] = str(offset + page_size)
        return body


@pytest.fixture
def drive():
    return FakeDrive()


@pytest.fixture
def client(drive):
    """DriveClient wired to the fake backend, with small pages and instant backoff."""
    c = DriveClient(DriveClientConfig(api_key="test-key", page_size=2), sleep=drive.sleep)
    c._send = drive.send
    return c


@pytest.fixture
def store():
    return MemoryStore()


def make_gallery_tree(drive: FakeDrive, root: str = "root", albums: int = 3, images: int = 3) -> list[str]:
    """Populate `root` with albums album0..N each holding images; returns album ids."""
    album_ids = []
    for a in range(albums):
        album_id = f"album{a}"
        drive.add_folder(root, album_id, f"Album {a}")
        for i in range(images):
            drive.add_image(album_id, f"{album_id}-img{i}", f"photo{i}.jpg", created=f"2024-01-0{i + 1}T00:00:00Z")
        album_ids.append(album_id)
    return album_ids
