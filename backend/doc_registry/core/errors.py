"""Error taxonomy shared by the registry services and the HTTP layer."""

from __future__ import annotations

from typing import Any, Mapping

from fastapi import status


class RegistryError(Exception):
    """Base registry error carrying HTTP semantics."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "registry_error"

    def __init__(self, message: str, *, status_code: int | None = None, code: str | None = None) -> None:
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.code, "message": self.message}


class ValidationError(RegistryError):
    """User-correctable input problems, keyed by field name.

    Raised before any network call so that an invalid submission never reaches
    the remote store.
    """

    status_code = 422  # Starlette renamed the 422 constant; the old name warns.
    code = "validation_error"

    def __init__(self, errors: Mapping[str, str], message: str | None = None) -> None:
        self.errors = dict(errors)
        summary = message or "; ".join(f"{field}: {text}" for field, text in self.errors.items())
        super().__init__(summary)

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["fields"] = self.errors
        return payload


class SyncError(RegistryError):
    """Remote store or transport failure; the message is shown to the user as-is."""

    status_code = status.HTTP_502_BAD_GATEWAY
    code = "sync_error"


class NotFoundError(RegistryError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class TaggingError(RegistryError):
    status_code = status.HTTP_502_BAD_GATEWAY
    code = "tagging_error"


__all__ = ["RegistryError", "ValidationError", "SyncError", "NotFoundError", "TaggingError"]
