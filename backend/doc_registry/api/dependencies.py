"""Shared FastAPI dependencies."""

from __future__ import annotations

from functools import lru_cache

from doc_registry.core.config import Settings, get_settings
from doc_registry.core.logging import get_logger
from doc_registry.db.cache import LocalCache
from doc_registry.db.sqlite import SQLiteDatabase
from doc_registry.documents.repository import DocumentRepository
from doc_registry.sync.client import RemoteStoreClient
from doc_registry.tagging.keywords import KeywordTagger, NullTagger, Tagger

logger = get_logger(__name__)

_DB: SQLiteDatabase | None = None
_REPOSITORY: DocumentRepository | None = None


@lru_cache(maxsize=1)
def get_app_settings() -> Settings:
    return get_settings()


def get_database() -> SQLiteDatabase:
    global _DB
    if _DB is None:
        settings = get_app_settings()
        _DB = SQLiteDatabase(settings.cache_path)
    return _DB


def get_remote_client() -> RemoteStoreClient:
    return RemoteStoreClient.from_settings(get_app_settings())


def get_tagger() -> Tagger:
    settings = get_app_settings()
    if not settings.tagging_enabled:
        return NullTagger()
    if not settings.tagging_api_key:
        logger.warning("Tagging is enabled but no API key is configured; documents will be saved untagged")
        return NullTagger()
    return KeywordTagger.from_settings(settings)


def get_repository() -> DocumentRepository:
    global _REPOSITORY
    if _REPOSITORY is None:
        settings = get_app_settings()
        repository = DocumentRepository.from_settings(
            settings,
            client=get_remote_client(),
            cache=LocalCache(get_database(), slot=settings.cache_slot),
            tagger=get_tagger(),
        )
        repository.load_cached()
        _REPOSITORY = repository
    return _REPOSITORY


__all__ = [
    "get_app_settings",
    "get_database",
    "get_remote_client",
    "get_repository",
    "get_tagger",
]
