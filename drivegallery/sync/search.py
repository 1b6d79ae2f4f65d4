"""
Search and sort helpers over gallery items.
"""

from typing import Iterable, List, Sequence

from ..core.constants import SEARCH_RESULT_LIMIT
from ..core.formatting import matches_query, name_sort_key, normalize_for_search
from ..drive.models import RemoteItem

SORT_FIELDS = ("name", "date")
SORT_DIRECTIONS = ("asc", "desc")


def filter_by_name(items: Iterable[RemoteItem], query: str) -> List[RemoteItem]:
    """Items whose name matches the query (accent/case-insensitive)."""
    q = normalize_for_search(query)
    return [item for item in items if matches_query(item.name, q)]


def search_index(items: Iterable, query: str, limit: int = SEARCH_RESULT_LIMIT) -> list:
    """
    Search indexed items by item name or owning album name.

    An empty query returns nothing (the index is only searched on demand).
    """
    q = normalize_for_search(query)
    if not q:
        return []

    results = []
    for item in items:
        if matches_query(item.name, q) or matches_query(getattr(item, "album_name", ""), q):
            results.append(item)
            if len(results) >= limit:
                break
    return results


def sort_items(items: Sequence[RemoteItem], by: str = "name", direction: str = "asc") -> List[RemoteItem]:
    """
    Sort items by name or date, ties broken by id.

    Date is the creation time, falling back to modification time.
    """
    if by not in SORT_FIELDS:
        raise ValueError(f"Unknown sort field: {by}")
    if direction not in SORT_DIRECTIONS:
        raise ValueError(f"Unknown sort direction: {direction}")

    reverse = direction == "desc"
    # Stable sorts: id tie-break first (always ascending), then the primary key
    ordered = sorted(items, key=lambda i: i.id)
    if by == "name":
        return sorted(ordered, key=lambda i: name_sort_key(i.name), reverse=reverse)
    return sorted(ordered, key=lambda i: i.sort_time, reverse=reverse)
