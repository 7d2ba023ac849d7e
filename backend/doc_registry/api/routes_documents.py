"""Document registry API routes.

Handlers are plain ``def`` functions so FastAPI runs them in its worker pool;
remote calls and retry back-off never block the event loop.
"""

from __future__ import annotations

from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile

from doc_registry.api.dependencies import get_app_settings, get_repository
from doc_registry.core.config import Settings
from doc_registry.core.errors import RegistryError
from doc_registry.documents.repository import DocumentRepository
from doc_registry.models.dto import (
    DeleteResponse,
    DocumentListResponse,
    DocumentResponse,
    SortDirection,
    SortKey,
)
from doc_registry.models.entities import AttachmentUpload, DocumentInput, DocumentPatch
from doc_registry.retrieval.search import SortState, search

router = APIRouter()


@router.get("", response_model=DocumentListResponse, summary="Search and sort documents")
def list_documents(
    q: str = Query("", description="Substring matched against text fields and tags"),
    sort: SortKey = Query("createdAt"),
    direction: SortDirection = Query("desc"),
    limit: int | None = Query(None, ge=1, le=500, description="Size of the recent list for empty queries"),
    repository: DocumentRepository = Depends(get_repository),
    settings: Settings = Depends(get_app_settings),
) -> DocumentListResponse:
    matches = search(repository.documents(), q, limit=limit or settings.recent_limit)
    ordered = SortState(sort, direction).apply(matches)
    return DocumentListResponse(
        query=q.strip(),
        sort=sort,
        direction=direction,
        total=len(ordered),
        results=[DocumentResponse.from_entity(document) for document in ordered],
    )


@router.get("/{doc_id}", response_model=DocumentResponse, summary="Fetch one document")
def get_document(doc_id: str, repository: DocumentRepository = Depends(get_repository)) -> DocumentResponse:
    return DocumentResponse.from_entity(repository.get(doc_id))


@router.get("/{doc_id}/attachment", summary="Download the document attachment")
def download_attachment(doc_id: str, repository: DocumentRepository = Depends(get_repository)) -> Response:
    try:
        attachment = repository.attachment(doc_id)
    except ValueError as exc:
        raise RegistryError(str(exc), status_code=500, code="attachment_corrupt") from exc
    disposition = f"attachment; filename*=UTF-8''{quote(attachment.file_name)}"
    return Response(
        content=attachment.data,
        media_type=attachment.file_type,
        headers={"Content-Disposition": disposition},
    )


@router.post("", response_model=DocumentResponse, status_code=201, summary="File a new document")
def create_document(
    doc_number: str = Form(""),
    source: str = Form(""),
    subject: str = Form(""),
    doc_date: str = Form(""),
    notes: str = Form(""),
    attachment: UploadFile | None = File(None),
    repository: DocumentRepository = Depends(get_repository),
) -> DocumentResponse:
    data = DocumentInput(
        doc_number=doc_number,
        source=source,
        subject=subject,
        doc_date=doc_date,
        notes=notes,
        attachment=_read_upload(attachment, repository.policy.max_bytes),
    )
    return DocumentResponse.from_entity(repository.create(data))


@router.patch("/{doc_id}", response_model=DocumentResponse, summary="Edit an existing document")
def update_document(
    doc_id: str,
    doc_number: str | None = Form(None),
    source: str | None = Form(None),
    subject: str | None = Form(None),
    doc_date: str | None = Form(None),
    notes: str | None = Form(None),
    attachment: UploadFile | None = File(None),
    repository: DocumentRepository = Depends(get_repository),
) -> DocumentResponse:
    patch = DocumentPatch(
        doc_number=doc_number,
        source=source,
        subject=subject,
        doc_date=doc_date,
        notes=notes,
        attachment=_read_upload(attachment, repository.policy.max_bytes),
    )
    return DocumentResponse.from_entity(repository.update(doc_id, patch))


@router.delete("/{doc_id}", response_model=DeleteResponse, summary="Remove a document")
def delete_document(doc_id: str, repository: DocumentRepository = Depends(get_repository)) -> DeleteResponse:
    removed = repository.delete(doc_id)
    return DeleteResponse(deleted=removed.id)


def _read_upload(upload: UploadFile | None, max_bytes: int) -> AttachmentUpload | None:
    if upload is None or not upload.filename:
        return None
    # One byte past the limit is enough for the size check to reject it.
    data = upload.file.read(max_bytes + 1)
    return AttachmentUpload(
        file_name=upload.filename,
        content_type=upload.content_type or "application/octet-stream",
        data=data,
    )


__all__ = ["router"]
