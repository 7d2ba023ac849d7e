"""Administrative routes for the document registry."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from doc_registry.api.dependencies import get_repository
from doc_registry.core.metrics import metrics_response
from doc_registry.documents.repository import DocumentRepository
from doc_registry.models.dto import SyncResponse

router = APIRouter()


@router.post("/sync", response_model=SyncResponse, summary="Replace local data with the remote collection")
def sync_documents(repository: DocumentRepository = Depends(get_repository)) -> SyncResponse:
    documents = repository.sync()
    return SyncResponse(documents=len(documents))


@router.get("/metrics", summary="Prometheus metrics")
def get_metrics():
    return metrics_response()


__all__ = ["router"]
