"""Internal dataclasses representing registry entities and their wire form."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Mapping


@dataclass(slots=True, frozen=True)
class Attachment:
    file_name: str
    file_type: str
    file_content: str  # base64 text


@dataclass(slots=True, frozen=True)
class Document:
    id: str
    doc_number: str
    source: str
    subject: str
    doc_date: str
    created_at: str
    notes: str = ""
    tags: tuple[str, ...] = ()
    attachment: Attachment | None = None

    @property
    def file_name(self) -> str | None:
        return self.attachment.file_name if self.attachment else None

    def with_changes(self, **changes: Any) -> "Document":
        changes.pop("id", None)
        changes.pop("created_at", None)
        return replace(self, **changes)

    def to_wire(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "docNumber": self.doc_number,
            "source": self.source,
            "subject": self.subject,
            "docDate": self.doc_date,
            "notes": self.notes,
            "tags": list(self.tags),
            "createdAt": self.created_at,
        }
        if self.attachment is not None:
            payload["fileName"] = self.attachment.file_name
            payload["fileContent"] = self.attachment.file_content
            payload["fileType"] = self.attachment.file_type
        return payload

    @classmethod
    def from_wire(cls, record: Mapping[str, Any]) -> "Document":
        """Build a document from a remote/cache record.

        Raises ``ValueError`` when ``id`` is missing; other gaps fall back to
        empty values the way the spreadsheet returns blank cells. Keys outside
        the known layout (including the retired ``fileName2`` set) are dropped.
        """
        doc_id = _text(record.get("id"))
        if not doc_id:
            raise ValueError("document record has no id")
        attachment = None
        name, content, mime = (_text(record.get(key)) for key in ("fileName", "fileContent", "fileType"))
        if name and content and mime:
            attachment = Attachment(file_name=name, file_type=mime, file_content=content)
        return cls(
            id=doc_id,
            doc_number=_text(record.get("docNumber")),
            source=_text(record.get("source")),
            subject=_text(record.get("subject")),
            doc_date=_text(record.get("docDate")),
            created_at=_text(record.get("createdAt")),
            notes=_text(record.get("notes")),
            tags=_tags(record.get("tags")),
            attachment=attachment,
        )


@dataclass(slots=True)
class AttachmentUpload:
    """A file supplied by the user, before base64 encoding."""

    file_name: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(slots=True)
class DocumentInput:
    doc_number: str
    source: str
    subject: str
    doc_date: str
    notes: str = ""
    attachment: AttachmentUpload | None = None


@dataclass(slots=True)
class DocumentPatch:
    """Replacement values for an update; ``None`` keeps the stored value."""

    doc_number: str | None = None
    source: str | None = None
    subject: str | None = None
    doc_date: str | None = None
    notes: str | None = None
    attachment: AttachmentUpload | None = None


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _tags(value: Any) -> tuple[str, ...]:
    if value is None or value == "":
        return ()
    if isinstance(value, str):
        # Spreadsheet cells may hold the list as comma-joined text.
        return tuple(part.strip() for part in value.split(",") if part.strip())
    if isinstance(value, (int, float)):
        # A lone numeric cell, e.g. a year used as a keyword.
        return (str(value),)
    if isinstance(value, (list, tuple)):
        return tuple(str(item) for item in value if item is not None and item != "")
    raise ValueError(f"unsupported tags value of type {type(value).__name__}")


__all__ = [
    "Attachment",
    "AttachmentUpload",
    "Document",
    "DocumentInput",
    "DocumentPatch",
]
