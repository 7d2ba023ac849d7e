"""Test fixtures for the document registry."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Callable

import orjson
import pytest
import requests

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from doc_registry.core.errors import SyncError  # noqa: E402
from doc_registry.db.cache import LocalCache  # noqa: E402
from doc_registry.db.sqlite import SQLiteDatabase  # noqa: E402
from doc_registry.documents.repository import DocumentRepository  # noqa: E402
from doc_registry.models.entities import Document  # noqa: E402


def _reset_singletons() -> None:
    from doc_registry.api import dependencies as deps
    from doc_registry.core.config import get_settings

    get_settings.cache_clear()
    deps.get_app_settings.cache_clear()
    if deps._DB is not None:
        deps._DB.close()
    deps._DB = None
    deps._REPOSITORY = None


@pytest.fixture(autouse=True)
def reset_state(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset global singletons and environment between tests."""
    monkeypatch.setenv("DOCREG_CACHE_PATH", str(tmp_path / "cache.db"))
    monkeypatch.setenv("DOCREG_REMOTE_URL", "")
    monkeypatch.setenv("DOCREG_TAGGING_ENABLED", "false")
    monkeypatch.delenv("DOCREG_CONFIG", raising=False)
    _reset_singletons()
    yield
    _reset_singletons()


def make_response(body: Any, status: int = 200) -> requests.Response:
    """Build a real ``requests.Response`` carrying ``body``."""
    response = requests.Response()
    response.status_code = status
    response.encoding = "utf-8"
    if isinstance(body, (bytes, str)):
        response._content = body.encode("utf-8") if isinstance(body, str) else body
    else:
        response._content = orjson.dumps(body)
    return response


class FakeSession:
    """Stands in for ``requests.Session``; replays outcomes in order.

    An outcome is a ``Response`` to return or an exception to raise. The last
    outcome repeats once the queue is exhausted.
    """

    def __init__(self, *outcomes: Any) -> None:
        self.outcomes = list(outcomes)
        self.calls: list[dict[str, Any]] = []

    def post(self, url: str, **kwargs: Any) -> requests.Response:
        self.calls.append({"url": url, **kwargs})
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class FakeRemote:
    """Stands in for ``RemoteStoreClient`` at the repository seam."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.records: list[dict[str, Any]] = []
        self.fail_with: SyncError | None = None

    def execute(self, action: Any, payload: dict[str, Any] | None = None) -> Any:
        name = getattr(action, "value", action)
        self.calls.append((name, dict(payload or {})))
        if self.fail_with is not None:
            raise self.fail_with
        if name == "read":
            return list(self.records)
        return None

    def actions(self) -> list[str]:
        return [name for name, _ in self.calls]


class FakeTagger:
    def __init__(self, tags: list[str] | None = None, error: Exception | None = None) -> None:
        self.tags = tags if tags is not None else ["หนังสือ", "ประชุม"]
        self.error = error
        self.calls: list[tuple[str, str]] = []

    def suggest(self, subject: str, notes: str) -> list[str]:
        self.calls.append((subject, notes))
        if self.error is not None:
            raise self.error
        return list(self.tags)


@pytest.fixture
def cache(tmp_path: Path) -> LocalCache:
    database = SQLiteDatabase(tmp_path / "repo-cache.db")
    yield LocalCache(database)
    database.close()


@pytest.fixture
def remote() -> FakeRemote:
    return FakeRemote()


@pytest.fixture
def tagger() -> FakeTagger:
    return FakeTagger()


@pytest.fixture
def repository(remote: FakeRemote, cache: LocalCache, tagger: FakeTagger) -> DocumentRepository:
    return DocumentRepository(client=remote, cache=cache, tagger=tagger)


@pytest.fixture
def make_document() -> Callable[..., Document]:
    def _make(**overrides: Any) -> Document:
        values: dict[str, Any] = {
            "id": "doc_1700000000000",
            "doc_number": "ศธ 0001/123",
            "source": "Registrar",
            "subject": "Budget meeting",
            "doc_date": "01/01/2567",
            "created_at": "2024-01-01T00:00:00.000Z",
            "notes": "",
            "tags": (),
        }
        values.update(overrides)
        return Document(**values)

    return _make
