"""
Remote item model for Drive Gallery.

A RemoteItem is one entry of the remote hierarchy as returned by the Drive
listing API. Items are immutable; a refresh replaces them wholesale.
"""

from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Optional

from ..core.constants import FOLDER_MIME, IMAGE_MIME_PREFIX


def parse_drive_time(value: Optional[str]) -> float:
    """Parse an RFC 3339 Drive timestamp to epoch seconds (0.0 if missing/invalid)."""
    if not value:
        return 0.0
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).timestamp()
    except ValueError:
        return 0.0


@dataclass(frozen=True)
class RemoteItem:
    """A folder or image in the remote hierarchy."""
    id: str
    name: str
    mime_type: str = ""
    thumbnail_link: Optional[str] = None
    icon_link: Optional[str] = None
    web_view_link: Optional[str] = None
    web_content_link: Optional[str] = None
    size: Optional[int] = None
    created_time: Optional[str] = None
    modified_time: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None

    @property
    def is_folder(self) -> bool:
        return self.mime_type == FOLDER_MIME

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith(IMAGE_MIME_PREFIX)

    @property
    def sort_time(self) -> float:
        """Creation time, falling back to modification time."""
        return parse_drive_time(self.created_time or self.modified_time)

    @classmethod
    def from_api(cls, data: dict) -> "RemoteItem":
        """Build from a Drive API `files` entry (camelCase keys)."""
        size = data.get("size")
        media = data.get("imageMediaMetadata") or {}
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            mime_type=data.get("mimeType", ""),
            thumbnail_link=data.get("thumbnailLink"),
            icon_link=data.get("iconLink"),
            web_view_link=data.get("webViewLink"),
            web_content_link=data.get("webContentLink"),
            size=int(size) if size not in (None, "") else None,
            created_time=data.get("createdTime"),
            modified_time=data.get("modifiedTime"),
            width=media.get("width"),
            height=media.get("height"),
        )

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "RemoteItem":
        """Inverse of to_dict(); unknown keys are ignored."""
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)
