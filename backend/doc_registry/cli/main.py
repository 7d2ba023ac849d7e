"""CLI entrypoint for the document registry."""

from __future__ import annotations

import json
import mimetypes
import os
from pathlib import Path
from typing import Optional

import requests
import typer

from doc_registry.utils.time import format_date_input

app = typer.Typer(name="docreg", help="Document registry command-line interface")

DEFAULT_HOST = "http://127.0.0.1:5173"


def _resolve_host(override: Optional[str]) -> str:
    if override:
        return override.rstrip('/')
    env_host = os.environ.get("DOCREG_HOST")
    if env_host:
        return env_host.rstrip('/')
    return DEFAULT_HOST


def _request(method: str, path: str, host: Optional[str] = None, **kwargs) -> requests.Response:
    base = _resolve_host(host)
    url = f"{base}{path}"
    resp = requests.request(method, url, timeout=120, **kwargs)
    if not resp.ok:
        try:
            detail = resp.json()
        except ValueError:
            detail = resp.text
        typer.echo(f"Request failed ({resp.status_code}): {_describe(detail)}", err=True)
        raise typer.Exit(code=1)
    return resp


def _describe(detail: object) -> str:
    if isinstance(detail, dict) and "message" in detail:
        fields = detail.get("fields") or {}
        lines = [str(detail["message"])]
        lines.extend(f"  {name}: {text}" for name, text in fields.items())
        return "\n".join(lines)
    return str(detail)


def _form(**values: Optional[str]) -> dict[str, str]:
    return {key: value for key, value in values.items() if value is not None}


def _files(attachment: Optional[Path]) -> dict[str, tuple[str, bytes, str]] | None:
    if attachment is None:
        return None
    path = attachment.expanduser()
    mime = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    return {"attachment": (path.name, path.read_bytes(), mime)}


def _echo(resp: requests.Response) -> None:
    typer.echo(json.dumps(resp.json(), indent=2, ensure_ascii=False))


@app.command()
def add(
    doc_number: str = typer.Option(..., "--number", help="Document number"),
    date: str = typer.Option(..., "--date", help="Document date, DD/MM/YYYY in the Buddhist Era (digits are enough)"),
    source: str = typer.Option(..., "--source", help="Where the document came from"),
    subject: str = typer.Option(..., "--subject", help="Document subject"),
    notes: str = typer.Option("", "--notes", help="Free-form notes"),
    attachment: Optional[Path] = typer.Option(None, "--attach", help="Image or PDF to attach"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """File a new document."""
    data = _form(doc_number=doc_number, doc_date=format_date_input(date), source=source, subject=subject, notes=notes)
    resp = _request("POST", "/documents", host=host, data=data, files=_files(attachment))
    _echo(resp)


@app.command()
def edit(
    doc_id: str = typer.Argument(..., help="Document identifier"),
    doc_number: Optional[str] = typer.Option(None, "--number", help="Document number"),
    date: Optional[str] = typer.Option(None, "--date", help="Document date, DD/MM/YYYY in the Buddhist Era"),
    source: Optional[str] = typer.Option(None, "--source", help="Where the document came from"),
    subject: Optional[str] = typer.Option(None, "--subject", help="Document subject"),
    notes: Optional[str] = typer.Option(None, "--notes", help="Free-form notes"),
    attachment: Optional[Path] = typer.Option(None, "--attach", help="Replacement attachment"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Edit fields of an existing document; omitted fields are kept."""
    data = _form(
        doc_number=doc_number,
        doc_date=format_date_input(date) if date is not None else None,
        source=source,
        subject=subject,
        notes=notes,
    )
    resp = _request("PATCH", f"/documents/{doc_id}", host=host, data=data, files=_files(attachment))
    _echo(resp)


@app.command()
def delete(
    doc_id: str = typer.Argument(..., help="Document identifier"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Remove a document."""
    if not yes:
        subject = _request("GET", f"/documents/{doc_id}", host=host).json()["subject"]
        typer.confirm(f"Delete document \"{subject}\"?", abort=True)
    _request("DELETE", f"/documents/{doc_id}", host=host)
    typer.echo(json.dumps({"status": "ok", "deleted": doc_id}))


@app.command()
def search(
    query: str = typer.Argument("", help="Text to look for; empty lists the most recent documents"),
    sort: str = typer.Option("createdAt", "--sort", help="docNumber, docDate, source, subject or createdAt"),
    direction: str = typer.Option("desc", "--direction", help="asc or desc"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Search documents."""
    params = {"q": query, "sort": sort, "direction": direction}
    resp = _request("GET", "/documents", host=host, params=params)
    _echo(resp)


@app.command()
def show(
    doc_id: str = typer.Argument(..., help="Document identifier"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Show one document."""
    _echo(_request("GET", f"/documents/{doc_id}", host=host))


@app.command()
def download(
    doc_id: str = typer.Argument(..., help="Document identifier"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Target file (defaults to the stored name)"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Save a document's attachment to disk."""
    if output is None:
        file_name = _request("GET", f"/documents/{doc_id}", host=host).json().get("file_name")
        if not file_name:
            typer.echo("Document has no attachment", err=True)
            raise typer.Exit(code=1)
        output = Path(Path(file_name).name)
    resp = _request("GET", f"/documents/{doc_id}/attachment", host=host)
    output.expanduser().write_bytes(resp.content)
    typer.echo(str(output))


@app.command()
def sync(
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Reload the registry from the remote store."""
    _echo(_request("POST", "/sync", host=host))


if __name__ == "__main__":
    app()
