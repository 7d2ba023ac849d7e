"""Pydantic DTOs exposed via API."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from doc_registry.models.entities import Document

SortKey = Literal["docNumber", "docDate", "source", "subject", "createdAt"]
SortDirection = Literal["asc", "desc"]


class DocumentResponse(BaseModel):
    id: str
    doc_number: str
    source: str
    subject: str
    doc_date: str
    notes: str
    tags: list[str]
    created_at: str
    file_name: str | None = None
    file_type: str | None = None
    has_attachment: bool = False

    @classmethod
    def from_entity(cls, document: Document) -> "DocumentResponse":
        attachment = document.attachment
        return cls(
            id=document.id,
            doc_number=document.doc_number,
            source=document.source,
            subject=document.subject,
            doc_date=document.doc_date,
            notes=document.notes,
            tags=list(document.tags),
            created_at=document.created_at,
            file_name=attachment.file_name if attachment else None,
            file_type=attachment.file_type if attachment else None,
            has_attachment=attachment is not None,
        )


class DocumentListResponse(BaseModel):
    query: str
    sort: SortKey
    direction: SortDirection
    total: int
    results: list[DocumentResponse]


class DeleteResponse(BaseModel):
    status: Literal["ok"] = "ok"
    deleted: str


class SyncResponse(BaseModel):
    status: Literal["ok"] = "ok"
    documents: int = Field(description="Documents held after the remote read")


class ErrorResponse(BaseModel):
    error: str
    message: str
    fields: dict[str, str] | None = None


__all__ = [
    "SortKey",
    "SortDirection",
    "DocumentResponse",
    "DocumentListResponse",
    "DeleteResponse",
    "SyncResponse",
    "ErrorResponse",
]
