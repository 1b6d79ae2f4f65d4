"""
Tests for the Gallery facade: wiring, degraded mode and persisted state.
"""

import asyncio
import tempfile
import time
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from drivegallery.config import GalleryConfig
from drivegallery.core.constants import COVERS_STORAGE_KEY
from drivegallery.drive.models import RemoteItem
from drivegallery.sync import Gallery, GalleryNotConfigured, LoadStatus, MemoryStore
from tests.conftest import make_gallery_tree


@pytest.fixture
def config():
    return GalleryConfig(api_key="test-key", root_folder_id="root", cover_batch_size=4, visible_cover_batch_size=2)


@pytest.fixture
def gallery(config, client, store):
    return Gallery(config, store=store, client=client)


class TestDegradedMode:
    """Missing credential or root folder: network operations refuse, cached state still readable."""

    @pytest.fixture
    def unconfigured(self, client, store):
        return Gallery(GalleryConfig(), store=store, client=client)

    def test_network_operations_refused(self, unconfigured, drive):
        for operation in (
            unconfigured.load_albums(),
            unconfigured.load_album_items("album0"),
            unconfigured.resolve_covers([]),
            unconfigured.build_index(),
            unconfigured.export([], Path(".")),
        ):
            with pytest.raises(GalleryNotConfigured) as exc_info:
                asyncio.run(operation)
            assert "GOOGLE_API_KEY" in exc_info.value.missing

        assert drive.calls == []

    def test_not_configured(self, unconfigured):
        assert not unconfigured.is_configured

    def test_cached_covers_still_served(self, client):
        store = MemoryStore()
        store.set(COVERS_STORAGE_KEY, {"album0": {"url": "https://cached", "updated_at": time.time()}})

        degraded = Gallery(GalleryConfig(), store=store, client=client)
        assert degraded.cover_url("album0") == "https://cached"

    def test_search_empty_before_index(self, unconfigured):
        assert unconfigured.search("anything") == []


class TestPersistence:

    def test_store_lives_in_data_dir(self, client, drive):
        make_gallery_tree(drive, albums=1)
        with tempfile.TemporaryDirectory() as tmpdir:
            config = GalleryConfig(api_key="test-key", root_folder_id="root", data_dir=Path(tmpdir))
            gallery = Gallery(config, client=client)
            asyncio.run(gallery.load_albums())

            assert gallery.store.path == Path(tmpdir) / "storage.json"
            assert gallery.store.path.exists()


class TestBrowsing:

    def test_load_albums_and_items(self, gallery, drive):
        make_gallery_tree(drive, albums=2, images=3)

        async def scenario():
            albums = await gallery.load_albums()
            items = await gallery.load_album_items(albums[0].id)
            return albums, items

        albums, items = asyncio.run(scenario())

        assert [a.name for a in albums] == ["Album 0", "Album 1"]
        assert len(items) == 3
        assert gallery.album_meta("album1").name == "Album 1"
        assert gallery.album_cache.get("album0").status == LoadStatus.READY

    def test_album_list_restored_on_startup(self, config, client, store, drive):
        make_gallery_tree(drive, albums=2)
        asyncio.run(Gallery(config, store=store, client=client).load_albums())
        calls_before = len(drive.calls)

        restarted = Gallery(config, store=store, client=client)

        assert restarted.albums.status == LoadStatus.READY
        assert len(asyncio.run(restarted.load_albums())) == 2
        assert len(drive.calls) == calls_before


class TestCovers:

    def test_resolve_all_loaded_albums(self, gallery, drive):
        make_gallery_tree(drive, albums=3)

        async def scenario():
            await gallery.load_albums()
            return await gallery.resolve_covers()

        assert asyncio.run(scenario()) == 3
        assert gallery.cover_url("album0").endswith("=s480")

    def test_visible_uses_smaller_batch(self, gallery, drive):
        ids = make_gallery_tree(drive, albums=6)
        drive.latency = 0.005

        asyncio.run(gallery.resolve_covers(ids, visible=True))
        assert drive.max_in_flight <= 2


class TestSearch:

    def test_build_then_search(self, gallery, drive):
        make_gallery_tree(drive, albums=2, images=2)

        report = asyncio.run(gallery.build_index())
        results = gallery.search("album 1")

        assert report.item_count == 4
        assert {r.album_id for r in results} == {"album1"}


class TestExport:

    @pytest.fixture
    def temp_dir(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            yield Path(tmpdir)

    def test_export_uses_configured_archive_name(self, config, client, store, drive, temp_dir):
        config.archive_name = "holiday.zip"
        gallery = Gallery(config, store=store, client=client)
        make_gallery_tree(drive, albums=1, images=2)

        async def fake_fetch(session, item):
            return b"bytes"

        async def scenario():
            items = await gallery.load_album_items("album0")
            return await gallery.export(items, temp_dir)

        with patch.object(gallery.exporter, "_session", MagicMock()), \
                patch.object(gallery.exporter, "_fetch_bytes", fake_fetch):
            result = asyncio.run(scenario())

        assert result.path == temp_dir / "holiday.zip"
        assert result.file_count == 2

    def test_export_links(self, gallery, temp_dir):
        path = gallery.export_links([RemoteItem(id="1", name="a.jpg")], temp_dir / "links.txt")
        assert path.read_text().startswith("a.jpg\t")

