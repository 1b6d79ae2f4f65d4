"""
Synchronization and caching layer.

Handles folder caches, cover resolution, the global index and archive export.
"""

from .storage import KeyValueStore, MemoryStore
from .albums import AlbumCache, AlbumEntry, AlbumList, LoadStatus
from .covers import CoverEntry, CoverResolver
from .index import GlobalIndexBuilder, IndexedItem, IndexReport, IndexStatus, SkippedFolder
from .search import filter_by_name, search_index, sort_items
from .exporter import ArchiveExporter, ExportResult, export_links
from .gallery import Gallery, GalleryNotConfigured

__all__ = [
    # Storage
    "KeyValueStore",
    "MemoryStore",
    # Album caches
    "AlbumCache",
    "AlbumEntry",
    "AlbumList",
    "LoadStatus",
    # Covers
    "CoverEntry",
    "CoverResolver",
    # Global index
    "GlobalIndexBuilder",
    "IndexedItem",
    "IndexReport",
    "IndexStatus",
    "SkippedFolder",
    # Search
    "filter_by_name",
    "search_index",
    "sort_items",
    # Export
    "ArchiveExporter",
    "ExportResult",
    "export_links",
    # Facade
    "Gallery",
    "GalleryNotConfigured",
]
