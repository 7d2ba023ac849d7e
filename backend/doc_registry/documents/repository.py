"""Session-owned document collection with remote-first mutations."""

from __future__ import annotations

import threading
from typing import Any, Sequence

from doc_registry.core.config import Settings
from doc_registry.core.errors import NotFoundError, SyncError, TaggingError
from doc_registry.core.logging import get_logger
from doc_registry.core.metrics import CACHED_DOCUMENTS
from doc_registry.db.cache import LocalCache
from doc_registry.documents.attachments import AttachmentPolicy, DecodedAttachment, decode_attachment
from doc_registry.documents.validation import validate_document
from doc_registry.models.entities import Document, DocumentInput, DocumentPatch
from doc_registry.sync.client import RemoteAction, RemoteStoreClient
from doc_registry.tagging.keywords import NullTagger, Tagger
from doc_registry.utils.ids import new_document_id
from doc_registry.utils.time import iso_timestamp

logger = get_logger(__name__)


class DocumentRepository:
    """In-memory authoritative list for the running session.

    Every mutation calls the remote store first and only touches memory and
    the local cache once the remote call has succeeded. A failed call leaves
    both exactly as they were and the error reaches the caller.
    """

    def __init__(
        self,
        client: RemoteStoreClient,
        cache: LocalCache,
        tagger: Tagger | None = None,
        policy: AttachmentPolicy | None = None,
        tagging_required: bool = False,
    ) -> None:
        self.client = client
        self.cache = cache
        self.tagger = tagger or NullTagger()
        self.policy = policy or AttachmentPolicy()
        self.tagging_required = tagging_required
        self._documents: list[Document] = []
        # Guards list surgery, id reservation and the cache write; never held
        # across a remote call.
        self._lock = threading.Lock()
        # Ids handed to creates whose remote call has not finished yet.
        self._pending_ids: set[str] = set()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        client: RemoteStoreClient,
        cache: LocalCache,
        tagger: Tagger | None = None,
    ) -> "DocumentRepository":
        return cls(
            client=client,
            cache=cache,
            tagger=tagger,
            policy=AttachmentPolicy(settings.max_attachment_bytes, settings.allowed_attachment_types),
            tagging_required=settings.tagging_required,
        )

    # Reads ------------------------------------------------------------

    def load_cached(self) -> int:
        """Seed memory from the local cache; returns the number loaded."""
        documents = self.cache.load()
        with self._lock:
            self._documents = documents
            CACHED_DOCUMENTS.set(len(documents))
        logger.info("Loaded %s documents from local cache", len(documents))
        return len(documents)

    def documents(self) -> list[Document]:
        with self._lock:
            return list(self._documents)

    def __len__(self) -> int:
        return len(self._documents)

    def get(self, doc_id: str) -> Document:
        with self._lock:
            for document in self._documents:
                if document.id == doc_id:
                    return document
        raise NotFoundError(f"Document {doc_id} not found")

    def attachment(self, doc_id: str) -> DecodedAttachment:
        document = self.get(doc_id)
        if document.attachment is None:
            raise NotFoundError(f"Document {doc_id} has no attachment")
        return decode_attachment(document.attachment)

    # Mutations --------------------------------------------------------

    def create(self, data: DocumentInput) -> Document:
        validate_document(
            data.doc_number, data.source, data.subject, data.doc_date, data.attachment, self.policy
        )
        subject = data.subject.strip()
        notes = (data.notes or "").strip()
        tags = self._suggest_tags(subject, notes)
        with self._lock:
            taken = {document.id for document in self._documents} | self._pending_ids
            doc_id = new_document_id(taken)
            self._pending_ids.add(doc_id)
        try:
            document = Document(
                id=doc_id,
                doc_number=data.doc_number.strip(),
                source=data.source.strip(),
                subject=subject,
                doc_date=data.doc_date.strip(),
                notes=notes,
                tags=tuple(tags),
                created_at=iso_timestamp(),
                attachment=self.policy.encode(data.attachment) if data.attachment else None,
            )
            self.client.execute(RemoteAction.CREATE, document.to_wire())
            with self._lock:
                self._documents.insert(0, document)
                self._persist()
        finally:
            with self._lock:
                self._pending_ids.discard(doc_id)
        logger.info("Created document %s", document.id, extra={"ctx_doc_id": document.id})
        return document

    def update(self, doc_id: str, patch: DocumentPatch) -> Document:
        existing = self.get(doc_id)
        validate_document(
            _pick(patch.doc_number, existing.doc_number),
            _pick(patch.source, existing.source),
            _pick(patch.subject, existing.subject),
            _pick(patch.doc_date, existing.doc_date),
            patch.attachment,
            self.policy,
        )
        changes: dict[str, Any] = {}
        for name in ("doc_number", "source", "subject", "doc_date", "notes"):
            value = getattr(patch, name)
            if value is not None:
                changes[name] = value.strip()
        if patch.attachment is not None:
            changes["attachment"] = self.policy.encode(patch.attachment)
        updated = existing.with_changes(**changes)

        self.client.execute(RemoteAction.UPDATE, updated.to_wire())

        with self._lock:
            index = self._index_of(doc_id)
            if index is None:
                logger.warning("Document %s vanished before its update was applied locally", doc_id)
            else:
                self._documents[index] = updated
                self._persist()
        logger.info("Updated document %s", doc_id, extra={"ctx_doc_id": doc_id})
        return updated

    def delete(self, doc_id: str) -> Document:
        existing = self.get(doc_id)

        self.client.execute(RemoteAction.DELETE, {"id": doc_id})

        with self._lock:
            self._documents = [document for document in self._documents if document.id != doc_id]
            self._persist()
        logger.info("Deleted document %s", doc_id, extra={"ctx_doc_id": doc_id})
        return existing

    def sync(self) -> list[Document]:
        """Replace memory and cache with the remote collection (remote wins)."""
        data = self.client.execute(RemoteAction.READ, {})
        documents = _parse_collection(data)
        with self._lock:
            self._documents = documents
            self._persist()
        logger.info("Synchronised %s documents from remote store", len(documents))
        return list(documents)

    def initial_sync(self) -> bool:
        """Startup sync; failure keeps the cached collection and only warns."""
        try:
            self.sync()
        except SyncError as exc:
            logger.warning("Initial sync failed, using cached data: %s", exc.message)
            return False
        return True

    # Internal helpers -------------------------------------------------

    def _suggest_tags(self, subject: str, notes: str) -> list[str]:
        try:
            return list(self.tagger.suggest(subject, notes))
        except TaggingError as exc:
            if self.tagging_required:
                raise
            logger.warning("Tagging failed, saving without tags: %s", exc.message)
            return []

    def _index_of(self, doc_id: str) -> int | None:
        for index, document in enumerate(self._documents):
            if document.id == doc_id:
                return index
        return None

    def _persist(self) -> None:
        self.cache.save(self._documents)
        CACHED_DOCUMENTS.set(len(self._documents))


def _pick(new: str | None, old: str) -> str:
    return old if new is None else new


def _parse_collection(data: Any) -> list[Document]:
    if data is None:
        return []
    if not isinstance(data, Sequence) or isinstance(data, (str, bytes)):
        raise SyncError("Received an invalid response from the remote store")
    documents: list[Document] = []
    seen: set[str] = set()
    for record in data:
        if not isinstance(record, dict):
            logger.warning("Skipping non-object record from remote store")
            continue
        try:
            document = Document.from_wire(record)
        except ValueError as exc:
            logger.warning("Skipping remote record: %s", exc)
            continue
        if document.id in seen:
            logger.warning("Skipping duplicate remote record %s", document.id)
            continue
        seen.add(document.id)
        documents.append(document)
    return documents


__all__ = ["DocumentRepository"]
