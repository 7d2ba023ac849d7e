"""Search and ordering over the session collection."""

from .search import SortState, recent, search, sort_documents

__all__ = [
    "SortState",
    "recent",
    "search",
    "sort_documents",
]
