"""Tests for the local cache and the document wire format."""

from __future__ import annotations

from pathlib import Path

from doc_registry.db.cache import LocalCache
from doc_registry.db.sqlite import SQLiteDatabase
from doc_registry.models.entities import Attachment, Document


def test_save_and_load_preserves_order_and_attachment(cache: LocalCache, make_document) -> None:
    attached = make_document(
        id="doc_2",
        tags=("ก", "ข"),
        attachment=Attachment(file_name="a.png", file_type="image/png", file_content="iVBO"),
    )
    plain = make_document(id="doc_1")
    cache.save([attached, plain])
    assert cache.load() == [attached, plain]


def test_missing_slot_is_empty(cache: LocalCache) -> None:
    assert cache.load() == []


def test_corrupt_slot_is_empty(cache: LocalCache) -> None:
    with cache.db.transaction() as cursor:
        cursor.execute(
            "INSERT INTO cache_slots (name, payload, updated_at) VALUES (?, ?, ?)",
            ["documents", "{not json", 0],
        )
    assert cache.load() == []


def test_record_with_unreadable_tags_is_skipped(cache: LocalCache) -> None:
    payload = '[{"id": "doc_1", "tags": {"a": 1}}, {"id": "doc_2", "tags": 2566}]'
    with cache.db.transaction() as cursor:
        cursor.execute(
            "INSERT INTO cache_slots (name, payload, updated_at) VALUES (?, ?, ?)",
            ["documents", payload, 0],
        )
    loaded = cache.load()
    assert [doc.id for doc in loaded] == ["doc_2"]
    assert loaded[0].tags == ("2566",)


def test_slots_are_independent(tmp_path: Path, make_document) -> None:
    database = SQLiteDatabase(tmp_path / "slots.db")
    first = LocalCache(database, slot="documents")
    second = LocalCache(database, slot="archive")
    first.save([make_document()])
    assert second.load() == []
    first.clear()
    assert first.load() == []
    database.close()


def test_cache_survives_reopen(tmp_path: Path, make_document) -> None:
    path = tmp_path / "durable.db"
    with SQLiteDatabase(path) as database:
        LocalCache(database).save([make_document()])
    with SQLiteDatabase(path) as database:
        assert [doc.id for doc in LocalCache(database).load()] == ["doc_1700000000000"]


def test_from_wire_drops_partial_attachment_and_legacy_keys() -> None:
    document = Document.from_wire(
        {
            "id": "doc_9",
            "docNumber": 42,
            "subject": "Legacy",
            "fileName": "orphan.pdf",
            "fileName2": "second.pdf",
            "fileContent2": "AAAA",
            "fileType2": "application/pdf",
            "tags": "alpha, beta",
        }
    )
    assert document.attachment is None
    assert document.doc_number == "42"
    assert document.tags == ("alpha", "beta")
    wire = document.to_wire()
    assert "fileName" not in wire
    assert "fileName2" not in wire
    assert wire["notes"] == ""


def test_with_changes_never_touches_identity(make_document) -> None:
    document = make_document()
    changed = document.with_changes(id="other", created_at="2030-01-01T00:00:00.000Z", subject="New")
    assert changed.id == document.id
    assert changed.created_at == document.created_at
    assert changed.subject == "New"
