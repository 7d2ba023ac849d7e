"""Durable local mirror of the document collection."""

from __future__ import annotations

from typing import Iterable

import orjson

from doc_registry.core.logging import get_logger
from doc_registry.db.sqlite import SQLiteDatabase
from doc_registry.models.entities import Document
from doc_registry.utils.time import now_ms

logger = get_logger(__name__)


class LocalCache:
    """Single named slot holding the JSON-serialised collection."""

    def __init__(self, database: SQLiteDatabase, slot: str = "documents") -> None:
        self.db = database
        self.slot = slot
        self.db.ensure_schema()

    def load(self) -> list[Document]:
        """Return the cached collection; a missing or unreadable slot is empty."""
        rows = self.db.query("SELECT payload FROM cache_slots WHERE name = ?", [self.slot])
        if not rows:
            return []
        try:
            records = orjson.loads(rows[0]["payload"])
        except orjson.JSONDecodeError:
            logger.warning("Cache slot %s is not valid JSON; starting empty", self.slot)
            return []
        if not isinstance(records, list):
            logger.warning("Cache slot %s does not hold a list; starting empty", self.slot)
            return []
        documents: list[Document] = []
        for record in records:
            if not isinstance(record, dict):
                continue
            try:
                documents.append(Document.from_wire(record))
            except ValueError as exc:
                logger.warning("Skipping cached record: %s", exc)
        return documents

    def save(self, documents: Iterable[Document]) -> None:
        payload = orjson.dumps([document.to_wire() for document in documents]).decode("utf-8")
        with self.db.transaction() as cursor:
            cursor.execute(
                """
                INSERT INTO cache_slots (name, payload, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(name) DO UPDATE SET payload = excluded.payload, updated_at = excluded.updated_at
                """,
                [self.slot, payload, now_ms()],
            )

    def clear(self) -> None:
        with self.db.transaction() as cursor:
            cursor.execute("DELETE FROM cache_slots WHERE name = ?", [self.slot])


__all__ = ["LocalCache"]
