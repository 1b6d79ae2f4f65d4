"""
Drive Gallery - browse, search and export a Google Drive folder tree as a gallery.

This package keeps a local, refreshable picture of a remote folder hierarchy
served by the Google Drive listing API.

Import from submodules directly:
    from drivegallery.config import GalleryConfig
    from drivegallery.drive import DriveClient
    from drivegallery.sync import Gallery
"""


def _get_version():
    """Read version from VERSION file."""
    from pathlib import Path
    version_file = Path(__file__).parent.parent / "VERSION"
    if version_file.exists():
        return version_file.read_text().strip()
    return "0.0.0"


__version__ = _get_version()
