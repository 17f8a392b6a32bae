"""
Document lifecycle — ingest, summarize once, then accumulate Q&A.

A document moves through three stages:
  1. raw text      created by ingest, text never changes afterwards
  2. summarized    summary set at most once, later calls read it back
  3. chatting      every successful ask appends one turn

Every operation takes the caller's owner_id and resolves documents through
the store's owner filter. A document owned by someone else looks exactly
like a missing one.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from ..core.config import get_settings
from ..core.guardrails import check_question
from ..core.locks import DocumentLocks
from ..core.storage import StorageBackend
from ..exceptions import (
    ExtractionError,
    ExtractionFailed,
    GenerationError,
    GenerationFailed,
    InvalidInput,
    NotFoundOrForbidden,
    NotYetSummarized,
    ProfileNotFound,
)
from ..models.document import ChatTurn, Document
from .adapters import Generator, Profile, ProfileProvider, TextExtractor
from .store import DocumentStore

logger = logging.getLogger(__name__)


@dataclass
class DocumentListing:
    documents: list[Document] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return bool(self.documents)


@dataclass
class SummaryResult:
    summary: str
    cache_hit: bool


class DocumentLifecycle:
    def __init__(
        self,
        store: DocumentStore,
        extractor: TextExtractor,
        generator: Generator,
        profiles: ProfileProvider,
        storage: StorageBackend,
        locks: DocumentLocks,
    ):
        self.store = store
        self.extractor = extractor
        self.generator = generator
        self.profiles = profiles
        self.storage = storage
        self.locks = locks

    # ── Ingest ───────────────────────────────────────────────────────

    async def ingest(self, owner_id: str, filename: str, file_bytes: bytes) -> Document:
        if not file_bytes:
            raise InvalidInput("Uploaded file is empty")
        filename = (filename or "").strip() or "document"

        async with self.storage.staged(file_bytes, filename, owner_id) as key:
            try:
                extraction = await self.extractor.extract(await self.storage.read(key), filename)
            except ExtractionError as e:
                logger.error("Extraction failed for %s: %s", filename, e)
                raise ExtractionFailed(str(e)) from e

        if not extraction.text or not extraction.text.strip():
            logger.warning("No text extracted from %s", filename)
            raise ExtractionFailed(f"No text could be extracted from '{filename}'")

        doc = await self.store.create(
            owner_id=owner_id,
            filename=filename,
            text=extraction.text,
            extraction=extraction.metadata,
        )
        logger.info(
            "Document ingested: %s (%d chars, extractor=%s)",
            doc.id, len(doc.text), extraction.metadata.get("extractor", "unknown"),
        )
        return doc

    # ── Reads ────────────────────────────────────────────────────────

    async def list_documents(self, owner_id: str) -> DocumentListing:
        return DocumentListing(await self.store.find_all_by_owner(owner_id))

    async def get_document(self, owner_id: str, document_id: str) -> Document:
        doc = await self.store.find_by_id(owner_id, document_id)
        if doc is None:
            raise NotFoundOrForbidden(document_id)
        return doc

    async def list_summarized(self, owner_id: str) -> list[Document]:
        return await self.store.find_summarized_by_owner(owner_id)

    async def get_summary(self, owner_id: str, document_id: str) -> str:
        doc = await self.get_document(owner_id, document_id)
        if doc.summary is None:
            raise NotYetSummarized(document_id)
        return doc.summary

    async def get_chat_history(self, owner_id: str, document_id: str) -> list[ChatTurn]:
        await self.get_document(owner_id, document_id)
        return await self.store.chat_history(owner_id, document_id)

    # ── Summarize ────────────────────────────────────────────────────

    async def summarize(self, owner_id: str, document_id: str) -> SummaryResult:
        """
        Return the document's summary, generating it on first use.
        The generator runs at most once per document; later calls are cache hits.
        """
        doc = await self.get_document(owner_id, document_id)
        if doc.summary is not None:
            logger.info("Summary cache hit: %s", doc.id)
            return SummaryResult(summary=doc.summary, cache_hit=True)

        async with self.locks.hold(doc.id):
            # Another request may have finished while we waited for the lock
            current = await self.store.current_summary(owner_id, doc.id)
            if current is not None:
                logger.info("Summary cache hit after wait: %s", doc.id)
                return SummaryResult(summary=current, cache_hit=True)

            profile = await self._profile_for(owner_id)
            interests = ", ".join(profile.interests) or get_settings().default_interests

            try:
                summary = await self.generator.summarize(doc.text, profile.age, interests)
            except GenerationError as e:
                logger.error("Summary generation failed for %s: %s", doc.id, e)
                raise GenerationFailed(str(e)) from e

            stored, written = await self.store.set_summary_if_absent(owner_id, doc.id, summary)

        logger.info("Summary cache miss: %s (%d chars)", doc.id, len(stored))
        return SummaryResult(summary=stored, cache_hit=not written)

    async def _profile_for(self, owner_id: str) -> Profile:
        try:
            return await self.profiles.get_profile(owner_id)
        except ProfileNotFound:
            logger.info("No profile for %s, using defaults", owner_id)
            return Profile()

    # ── Ask ──────────────────────────────────────────────────────────

    async def ask(self, owner_id: str, document_id: str, question: Optional[str]) -> ChatTurn:
        check = check_question(question, owner_id)
        if not check.allowed:
            raise InvalidInput(check.reason)
        question = check.modified_input

        doc = await self.get_document(owner_id, document_id)

        try:
            answer = await self.generator.answer(doc.text, question)
        except GenerationError as e:
            logger.error("Answer generation failed for %s: %s", doc.id, e)
            raise GenerationFailed(str(e)) from e

        turn = await self.store.append_turn(owner_id, doc.id, question, answer)
        logger.info(
            "Question answered on %s (%d turns)",
            doc.id, await self.store.count_turns(owner_id, doc.id),
        )
        return turn
