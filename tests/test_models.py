"""
Tests for the remote item model and URL builders.
"""

from drivegallery.core.constants import FOLDER_MIME
from drivegallery.drive.models import RemoteItem, parse_drive_time
from drivegallery.drive.urls import api_download_url, download_url, folder_url, preview_url


class TestRemoteItem:

    def test_from_api(self):
        item = RemoteItem.from_api({
            "id": "abc",
            "name": "photo.jpg",
            "mimeType": "image/jpeg",
            "thumbnailLink": "https://lh3.example.com/abc=s220",
            "size": "12345",
            "createdTime": "2024-05-01T10:00:00.000Z",
            "imageMediaMetadata": {"width": 4000, "height": 3000},
        })

        assert item.size == 12345
        assert item.width == 4000
        assert item.is_image
        assert not item.is_folder

    def test_from_api_minimal(self):
        item = RemoteItem.from_api({"id": "f", "mimeType": FOLDER_MIME})
        assert item.name == ""
        assert item.size is None
        assert item.is_folder

    def test_dict_round_trip_ignores_unknown_keys(self):
        item = RemoteItem(id="x", name="x.jpg", size=10)
        data = item.to_dict()
        data["legacy_field"] = True
        assert RemoteItem.from_dict(data) == item

    def test_sort_time_prefers_created(self):
        item = RemoteItem(id="x", name="x", created_time="2024-01-01T00:00:00Z", modified_time="2025-01-01T00:00:00Z")
        assert item.sort_time == parse_drive_time("2024-01-01T00:00:00Z")

    def test_parse_drive_time_invalid(self):
        assert parse_drive_time(None) == 0.0
        assert parse_drive_time("not a date") == 0.0


class TestUrls:

    def test_api_download_url(self):
        assert api_download_url("abc", "k") == "https://www.googleapis.com/drive/v3/files/abc?alt=media&key=k"

    def test_download_url_prefers_content_link(self):
        item = RemoteItem(id="abc", name="a", web_content_link="https://drive.example.com/dl")
        assert download_url(item) == "https://drive.example.com/dl"

    def test_download_url_fallback(self):
        assert download_url(RemoteItem(id="abc", name="a")) == "https://drive.google.com/uc?export=download&id=abc"

    def test_view_urls(self):
        assert preview_url("abc") == "https://drive.google.com/file/d/abc/view"
        assert folder_url("xyz") == "https://drive.google.com/drive/folders/xyz"
