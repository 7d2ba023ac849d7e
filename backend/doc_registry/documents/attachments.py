"""Attachment gatekeeping and base64 encoding."""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from typing import Iterable

from doc_registry.core.config import ALLOWED_ATTACHMENT_TYPES, MAX_ATTACHMENT_BYTES
from doc_registry.core.errors import ValidationError
from doc_registry.models.entities import Attachment, AttachmentUpload


@dataclass(slots=True)
class DecodedAttachment:
    file_name: str
    file_type: str
    data: bytes


class AttachmentPolicy:
    """Accepts images and PDFs up to a size limit (inclusive)."""

    def __init__(
        self,
        max_bytes: int = MAX_ATTACHMENT_BYTES,
        allowed_types: Iterable[str] = ALLOWED_ATTACHMENT_TYPES,
    ) -> None:
        self.max_bytes = max_bytes
        self.allowed_types = frozenset(allowed_types)

    def check(self, upload: AttachmentUpload) -> None:
        if upload.size > self.max_bytes:
            limit_mb = self.max_bytes // (1024 * 1024)
            raise ValidationError({"attachment": f"File is larger than {limit_mb}MB"})
        if upload.content_type not in self.allowed_types:
            raise ValidationError({"attachment": "Unsupported file type (images or PDF only)"})

    def encode(self, upload: AttachmentUpload) -> Attachment:
        self.check(upload)
        return Attachment(
            file_name=upload.file_name,
            file_type=upload.content_type,
            file_content=base64.b64encode(upload.data).decode("ascii"),
        )


def decode_attachment(attachment: Attachment) -> DecodedAttachment:
    """Turn stored base64 text back into bytes for download."""
    try:
        data = base64.b64decode(attachment.file_content, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError(f"Attachment {attachment.file_name!r} is not valid base64") from exc
    return DecodedAttachment(file_name=attachment.file_name, file_type=attachment.file_type, data=data)


__all__ = ["AttachmentPolicy", "DecodedAttachment", "decode_attachment"]
