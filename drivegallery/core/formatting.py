"""
Formatting, sanitization and search-normalization utilities for Drive Gallery.
"""

import re
import unicodedata

from .constants import FALLBACK_ENTRY_NAME


# ============================================================================
# Archive entry names
# ============================================================================

def sanitize_entry_name(name: str) -> str:
    """
    Make a Drive file name safe to use as a flat archive entry name.

    Path separators become underscores (so an entry can never create a
    directory or escape the archive root) and null bytes are dropped.
    """
    name = unicodedata.normalize("NFC", name or "")
    safe = name.replace("\\", "_").replace("/", "_").replace("\x00", "").strip()
    return safe or FALLBACK_ENTRY_NAME


def split_extension(name: str) -> tuple[str, str]:
    """
    Split "photo.jpg" into ("photo", ".jpg").

    Leading-dot names (".hidden") and trailing dots ("name.") have no extension.
    """
    dot = name.rfind(".")
    if 0 < dot < len(name) - 1:
        return name[:dot], name[dot:]
    return name, ""


class UniqueNamer:
    """
    Hands out collision-free entry names for one archive.

    The first occurrence of a name is kept unmodified; later duplicates get
    " (n)" inserted before the extension, starting at 2.
    """

    def __init__(self):
        self._counts: dict[str, int] = {}
        self._used: set[str] = set()

    def claim(self, name: str) -> str:
        clean = sanitize_entry_name(name)
        count = self._counts.get(clean, 0)
        if count == 0 and clean not in self._used:
            self._counts[clean] = 1
            self._used.add(clean)
            return clean

        base, ext = split_extension(clean)
        n = max(count, 1) + 1
        candidate = f"{base} ({n}){ext}"
        # A literal "a (2).jpg" in the selection must not be overwritten
        while candidate in self._used:
            n += 1
            candidate = f"{base} ({n}){ext}"
        self._counts[clean] = n
        self._used.add(candidate)
        return candidate


# ============================================================================
# Search normalization
# ============================================================================

def normalize_for_search(text: str) -> str:
    """
    Normalize text for accent- and case-insensitive matching.

    "Çiçek Bahçesi" and "cicek bahcesi" normalize to the same string.
    """
    decomposed = unicodedata.normalize("NFKD", (text or "").casefold())
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    return stripped.strip()


def matches_query(text: str, normalized_query: str) -> bool:
    """Check a raw text against an already-normalized query (empty matches all)."""
    if not normalized_query:
        return True
    return normalized_query in normalize_for_search(text)


# ============================================================================
# Display helpers
# ============================================================================

_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB", "PB")


def format_size(size_bytes: int) -> str:
    """Human readable byte count ("2.0 KB") for export summaries and listings."""
    value = float(size_bytes)
    for unit in _SIZE_UNITS[:-1]:
        if value < 1024:
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} {_SIZE_UNITS[-1]}"


def name_sort_key(name: str) -> str:
    # "Éte" sorts next to "ete", not after "z"
    return normalize_for_search(name)


_THUMBNAIL_SIZE_SUFFIX = re.compile(r"=s\d+")


def sized_thumbnail(url: str, size: int) -> str:
    """Rewrite a Drive thumbnail link to request `size` pixels on the long edge."""
    if not url:
        return ""
    if _THUMBNAIL_SIZE_SUFFIX.search(url):
        return _THUMBNAIL_SIZE_SUFFIX.sub(f"=s{size}", url)
    return f"{url}=s{size}"
