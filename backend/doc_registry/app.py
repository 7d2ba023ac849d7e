"""FastAPI application setup for the document registry."""

from __future__ import annotations

import asyncio

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from doc_registry.api.dependencies import get_app_settings, get_repository
from doc_registry.api.routes_admin import router as admin_router
from doc_registry.api.routes_documents import router as documents_router
from doc_registry.core.errors import RegistryError
from doc_registry.core.logging import configure_logging, get_logger
from doc_registry.models.dto import ErrorResponse

configure_logging()
logger = get_logger(__name__)

app = FastAPI(
    title="Document Registry",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://127.0.0.1:5174",
        "http://localhost:5174",
    ],
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

ERROR_RESPONSES = {
    404: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
}

app.include_router(documents_router, prefix="/documents", tags=["documents"], responses=ERROR_RESPONSES)
app.include_router(admin_router, prefix="", tags=["admin"], responses={502: {"model": ErrorResponse}})


@app.exception_handler(RegistryError)
async def registry_error_handler(request: Request, exc: RegistryError) -> JSONResponse:
    logger.info("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.on_event("startup")
async def startup() -> None:
    """Seed from the local cache, then refresh from the remote store in the background."""
    settings = get_app_settings()
    repository = get_repository()
    if settings.initial_sync and settings.remote_url:
        loop = asyncio.get_running_loop()
        future = loop.run_in_executor(None, repository.initial_sync)
        future.add_done_callback(_report_initial_sync)
        app.state.initial_sync = future


def _report_initial_sync(future: asyncio.Future) -> None:
    if future.cancelled():
        return
    exc = future.exception()
    if exc is not None:
        logger.error("Initial sync crashed: %s", exc, exc_info=exc)


@app.get("/health", tags=["admin"])
def health() -> dict[str, object]:
    """Simple liveness check."""
    return {"ok": True, "documents": len(get_repository())}
