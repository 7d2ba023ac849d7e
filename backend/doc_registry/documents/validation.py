"""Field validation performed before any remote call."""

from __future__ import annotations

from typing import TYPE_CHECKING

from doc_registry.core.errors import ValidationError
from doc_registry.models.entities import AttachmentUpload
from doc_registry.utils.time import is_be_date

if TYPE_CHECKING:
    from doc_registry.documents.attachments import AttachmentPolicy

REQUIRED_MESSAGES = {
    "doc_number": "Document number is required",
    "source": "Source is required",
    "subject": "Subject is required",
}
DATE_MESSAGE = "Enter the date as DD/MM/YYYY"


def collect_errors(
    doc_number: str | None,
    source: str | None,
    subject: str | None,
    doc_date: str | None,
) -> dict[str, str]:
    values = {"doc_number": doc_number, "source": source, "subject": subject}
    errors = {field: message for field, message in REQUIRED_MESSAGES.items() if not (values[field] or "").strip()}
    if not doc_date or not is_be_date(doc_date):
        errors["doc_date"] = DATE_MESSAGE
    return errors


def validate_document(
    doc_number: str | None,
    source: str | None,
    subject: str | None,
    doc_date: str | None,
    upload: AttachmentUpload | None = None,
    policy: AttachmentPolicy | None = None,
) -> None:
    """Raise ``ValidationError`` listing every failing field, attachment included."""
    errors = collect_errors(doc_number, source, subject, doc_date)
    if upload is not None and policy is not None:
        try:
            policy.check(upload)
        except ValidationError as exc:
            errors.update(exc.errors)
    if errors:
        raise ValidationError(errors)


__all__ = ["collect_errors", "validate_document"]
