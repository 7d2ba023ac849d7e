"""API integration tests."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from conftest import FakeRemote, FakeTagger
from doc_registry.api import dependencies as deps
from doc_registry.app import app
from doc_registry.core.errors import SyncError
from doc_registry.db.cache import LocalCache
from doc_registry.documents.attachments import AttachmentPolicy
from doc_registry.documents.repository import DocumentRepository

FORM = {
    "doc_number": "ศธ 6101/88",
    "source": "Faculty office",
    "subject": "Annual budget request",
    "doc_date": "15/03/2567",
    "notes": "urgent",
}


@pytest.fixture
def client(remote: FakeRemote, cache: LocalCache) -> TestClient:
    deps._REPOSITORY = DocumentRepository(client=remote, cache=cache, tagger=FakeTagger(["ABC"]))
    with TestClient(app) as test_client:
        yield test_client


def test_health(client: TestClient) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"ok": True, "documents": 0}


def test_create_search_and_fetch(client: TestClient) -> None:
    created = client.post("/documents", data=FORM)
    assert created.status_code == 201
    body = created.json()
    assert body["tags"] == ["ABC"]
    assert body["has_attachment"] is False

    listing = client.get("/documents", params={"q": "abc"})
    assert listing.status_code == 200
    assert [item["id"] for item in listing.json()["results"]] == [body["id"]]

    assert client.get("/documents", params={"q": "nothing-like-this"}).json()["total"] == 0
    assert client.get(f"/documents/{body['id']}").json()["subject"] == FORM["subject"]


def test_validation_errors_are_reported_per_field(client: TestClient, remote: FakeRemote) -> None:
    resp = client.post("/documents", data={**FORM, "subject": "", "doc_date": "15-03-2567"})
    assert resp.status_code == 422
    payload = resp.json()
    assert payload["error"] == "validation_error"
    assert set(payload["fields"]) == {"subject", "doc_date"}
    assert remote.calls == []


def test_attachment_upload_and_download(client: TestClient) -> None:
    files = {"attachment": ("memo.pdf", b"%PDF-1.4 test", "application/pdf")}
    created = client.post("/documents", data=FORM, files=files).json()
    assert created["file_name"] == "memo.pdf"

    resp = client.get(f"/documents/{created['id']}/attachment")
    assert resp.status_code == 200
    assert resp.content == b"%PDF-1.4 test"
    assert resp.headers["content-type"].startswith("application/pdf")
    assert "filename*=UTF-8''" in resp.headers["content-disposition"]


def test_rejects_unsupported_attachment(client: TestClient, remote: FakeRemote) -> None:
    files = {"attachment": ("notes.txt", b"hello", "text/plain")}
    resp = client.post("/documents", data=FORM, files=files)
    assert resp.status_code == 422
    assert "attachment" in resp.json()["fields"]
    assert remote.calls == []


class _RecordingPolicy(AttachmentPolicy):
    def __init__(self, max_bytes: int) -> None:
        super().__init__(max_bytes=max_bytes)
        self.seen_sizes: list[int] = []

    def check(self, upload) -> None:
        self.seen_sizes.append(upload.size)
        super().check(upload)


def test_oversized_upload_is_read_only_past_the_limit(remote: FakeRemote, cache: LocalCache) -> None:
    policy = _RecordingPolicy(max_bytes=8)
    deps._REPOSITORY = DocumentRepository(client=remote, cache=cache, policy=policy)
    files = {"attachment": ("memo.pdf", b"%" * 4096, "application/pdf")}
    with TestClient(app) as test_client:
        resp = test_client.post("/documents", data=FORM, files=files)
    assert resp.status_code == 422
    assert "attachment" in resp.json()["fields"]
    assert policy.seen_sizes == [9]
    assert remote.calls == []


def test_patch_keeps_unsent_fields(client: TestClient) -> None:
    created = client.post("/documents", data=FORM).json()
    resp = client.patch(f"/documents/{created['id']}", data={"subject": "Revised"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["subject"] == "Revised"
    assert body["source"] == FORM["source"]
    assert body["created_at"] == created["created_at"]


def test_sort_by_document_date(client: TestClient) -> None:
    client.post("/documents", data={**FORM, "doc_date": "01/01/2565", "subject": "older"})
    client.post("/documents", data={**FORM, "doc_date": "01/01/2566", "subject": "newer"})
    resp = client.get("/documents", params={"sort": "docDate", "direction": "desc"})
    assert [item["subject"] for item in resp.json()["results"]] == ["newer", "older"]


def test_remote_failure_maps_to_bad_gateway(client: TestClient, remote: FakeRemote) -> None:
    created = client.post("/documents", data=FORM).json()
    remote.fail_with = SyncError("Sheet is locked")
    resp = client.delete(f"/documents/{created['id']}")
    assert resp.status_code == 502
    assert resp.json() == {"error": "sync_error", "message": "Sheet is locked"}
    assert client.get("/health").json()["documents"] == 1


def test_delete_and_missing_document(client: TestClient) -> None:
    created = client.post("/documents", data=FORM).json()
    assert client.delete(f"/documents/{created['id']}").json() == {"status": "ok", "deleted": created["id"]}
    assert client.get(f"/documents/{created['id']}").status_code == 404


def test_sync_endpoint_replaces_collection(client: TestClient, remote: FakeRemote) -> None:
    client.post("/documents", data=FORM)
    remote.records = [{"id": "doc_remote", "subject": "From sheet", "docDate": "01/01/2566"}]
    resp = client.post("/sync")
    assert resp.json() == {"status": "ok", "documents": 1}
    assert [item["id"] for item in client.get("/documents").json()["results"]] == ["doc_remote"]


def test_metrics_endpoint(client: TestClient) -> None:
    client.post("/sync")
    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert "docreg_cached_documents" in resp.text
