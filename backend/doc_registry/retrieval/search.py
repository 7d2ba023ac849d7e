"""Filtering and ordering of documents for presentation.

Everything here is a pure function of its inputs; the repository hands over a
snapshot of its collection and gets new lists back.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Sequence

from doc_registry.models.entities import Document
from doc_registry.utils.text import collation_key, fold
from doc_registry.utils.time import be_date_to_datetime, parse_iso

DEFAULT_RECENT_LIMIT = 10
DEFAULT_SORT_KEY = "createdAt"
DEFAULT_DIRECTION = "desc"

# Wire name -> attribute; snake_case aliases are accepted too.
SORT_KEYS = {
    "docNumber": "doc_number",
    "docDate": "doc_date",
    "source": "source",
    "subject": "subject",
    "createdAt": "created_at",
}
_ALIASES = {attribute: key for key, attribute in SORT_KEYS.items()}
_DATE_FLOOR = datetime.min.replace(tzinfo=timezone.utc)


def recent(documents: Iterable[Document], limit: int = DEFAULT_RECENT_LIMIT) -> list[Document]:
    """Most recently created documents first."""
    ordered = sorted(documents, key=lambda document: parse_iso(document.created_at), reverse=True)
    return ordered[:limit]


def matches(document: Document, needle: str) -> bool:
    fields = (
        document.subject,
        document.doc_number,
        document.source,
        document.notes,
        document.file_name or "",
    )
    if any(needle in fold(value) for value in fields):
        return True
    return any(needle in fold(tag) for tag in document.tags)


def search(documents: Sequence[Document], query: str | None, limit: int = DEFAULT_RECENT_LIMIT) -> list[Document]:
    """Case-insensitive substring search; an empty query returns ``recent``."""
    needle = fold((query or "").strip())
    if not needle:
        return recent(documents, limit)
    return [document for document in documents if matches(document, needle)]


def normalize_sort_key(key: str) -> str:
    if key in SORT_KEYS:
        return key
    if key in _ALIASES:
        return _ALIASES[key]
    raise ValueError(f"Unsupported sort key: {key}")


def sort_documents(
    documents: Iterable[Document],
    key: str = DEFAULT_SORT_KEY,
    direction: str = DEFAULT_DIRECTION,
) -> list[Document]:
    """Stable sort by ``key``; ``direction`` is ``asc`` or ``desc``."""
    if direction not in ("asc", "desc"):
        raise ValueError(f"Unsupported sort direction: {direction}")
    key = normalize_sort_key(key)
    return sorted(documents, key=_key_function(key), reverse=direction == "desc")


def _key_function(key: str) -> Callable[[Document], Any]:
    if key == "docDate":
        return lambda document: be_date_to_datetime(document.doc_date) or _DATE_FLOOR
    if key == "createdAt":
        return lambda document: parse_iso(document.created_at)
    attribute = SORT_KEYS[key]
    return lambda document: collation_key(getattr(document, attribute))


@dataclass(slots=True)
class SortState:
    """Column sort selection as toggled from a results table header."""

    key: str = DEFAULT_SORT_KEY
    direction: str = DEFAULT_DIRECTION

    def toggle(self, key: str) -> "SortState":
        """Flip direction for the active key; a new key starts descending."""
        key = normalize_sort_key(key)
        if key == self.key and self.direction == "desc":
            self.direction = "asc"
        else:
            self.direction = "desc"
        self.key = key
        return self

    def reset(self) -> "SortState":
        self.key = DEFAULT_SORT_KEY
        self.direction = DEFAULT_DIRECTION
        return self

    def apply(self, documents: Iterable[Document]) -> list[Document]:
        return sort_documents(documents, self.key, self.direction)


__all__ = [
    "DEFAULT_RECENT_LIMIT",
    "SORT_KEYS",
    "SortState",
    "matches",
    "normalize_sort_key",
    "recent",
    "search",
    "sort_documents",
]
