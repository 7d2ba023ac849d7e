"""Tests for the command-line client."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
from typer.testing import CliRunner

from conftest import make_response
from doc_registry.cli import main as cli

runner = CliRunner()


@pytest.fixture
def sent(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, Any]]:
    calls: list[dict[str, Any]] = []

    def fake_request(method: str, url: str, **kwargs: Any):
        calls.append({"method": method, "url": url, **kwargs})
        if method == "DELETE":
            return make_response({"status": "ok", "deleted": "doc_1"})
        return make_response({"id": "doc_1", "subject": "Budget"})

    monkeypatch.setattr(cli.requests, "request", fake_request)
    monkeypatch.delenv("DOCREG_HOST", raising=False)
    return calls


def test_add_formats_date_digits(sent: list[dict[str, Any]]) -> None:
    result = runner.invoke(
        cli.app,
        ["add", "--number", "1/2567", "--date", "15032567", "--source", "Office", "--subject", "Budget"],
    )
    assert result.exit_code == 0, result.output
    call = sent[0]
    assert call["method"] == "POST"
    assert call["url"] == "http://127.0.0.1:5173/documents"
    assert call["data"]["doc_date"] == "15/03/2567"
    assert call["files"] is None


def test_edit_sends_only_given_fields(sent: list[dict[str, Any]]) -> None:
    result = runner.invoke(cli.app, ["edit", "doc_1", "--subject", "Revised", "--host", "http://h:1/"])
    assert result.exit_code == 0, result.output
    assert sent[0]["url"] == "http://h:1/documents/doc_1"
    assert sent[0]["data"] == {"subject": "Revised"}


def test_delete_with_confirmation_skipped(sent: list[dict[str, Any]]) -> None:
    result = runner.invoke(cli.app, ["delete", "doc_1", "--yes"])
    assert result.exit_code == 0, result.output
    assert [call["method"] for call in sent] == ["DELETE"]


def test_failed_request_exits_non_zero(monkeypatch: pytest.MonkeyPatch) -> None:
    body = {"error": "validation_error", "message": "bad", "fields": {"subject": "Subject is required"}}
    monkeypatch.setattr(cli.requests, "request", lambda *args, **kwargs: make_response(body, status=422))
    result = runner.invoke(cli.app, ["show", "doc_1"])
    assert result.exit_code == 1


def test_download_keeps_stored_name_inside_cwd(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    def fake_request(method: str, url: str, **kwargs: Any):
        if url.endswith("/attachment"):
            return make_response(b"%PDF-1.4")
        return make_response({"id": "doc_1", "file_name": "../../escape.pdf"})

    monkeypatch.setattr(cli.requests, "request", fake_request)
    work = tmp_path / "work"
    work.mkdir()
    monkeypatch.chdir(work)
    result = runner.invoke(cli.app, ["download", "doc_1"])
    assert result.exit_code == 0, result.output
    assert (work / "escape.pdf").read_bytes() == b"%PDF-1.4"
    assert not (tmp_path.parent / "escape.pdf").exists()
