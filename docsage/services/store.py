"""
Document store — every query is filtered by owner_id.

Writes commit immediately. Callers holding a per-document lock therefore
release it only after the change is visible to other sessions, and every
read uses populate_existing so a long-lived session still sees the latest
committed summary.
"""

import logging
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.base import utcnow
from ..models.document import ChatTurn, Document

logger = logging.getLogger(__name__)


class DocumentStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self,
        owner_id: str,
        filename: str,
        text: str,
        extraction: Optional[dict] = None,
    ) -> Document:
        doc = Document(
            owner_id=owner_id,
            filename=filename,
            text=text,
            extraction=extraction or {},
        )
        self.db.add(doc)
        await self.db.commit()
        return doc

    async def find_by_id(self, owner_id: str, document_id: str) -> Optional[Document]:
        result = await self.db.execute(
            select(Document)
            .where(Document.id == document_id, Document.owner_id == owner_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def find_all_by_owner(self, owner_id: str) -> list[Document]:
        result = await self.db.execute(
            select(Document)
            .where(Document.owner_id == owner_id)
            .order_by(Document.created_at.asc(), Document.id.asc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def find_summarized_by_owner(self, owner_id: str) -> list[Document]:
        result = await self.db.execute(
            select(Document)
            .where(Document.owner_id == owner_id, Document.summary.is_not(None))
            .order_by(Document.summarized_at.asc(), Document.id.asc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def current_summary(self, owner_id: str, document_id: str) -> Optional[str]:
        """Committed summary for a document, bypassing any loaded instance."""
        result = await self.db.execute(
            select(Document.summary).where(
                Document.id == document_id, Document.owner_id == owner_id
            )
        )
        return result.scalar_one_or_none()

    async def set_summary_if_absent(
        self, owner_id: str, document_id: str, summary: str
    ) -> tuple[str, bool]:
        """
        Store `summary` only if the document has none yet.
        Returns (persisted summary, whether this call wrote it).
        """
        result = await self.db.execute(
            update(Document)
            .where(
                Document.id == document_id,
                Document.owner_id == owner_id,
                Document.summary.is_(None),
            )
            .values(summary=summary, summarized_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()

        if result.rowcount == 1:
            return summary, True

        persisted = await self.current_summary(owner_id, document_id)
        logger.info("Summary for %s already set by another request", document_id)
        return persisted, False

    async def append_turn(
        self, owner_id: str, document_id: str, question: str, answer: str
    ) -> ChatTurn:
        """One INSERT per turn, so concurrent appends never overwrite each other."""
        turn = ChatTurn(
            document_id=document_id,
            owner_id=owner_id,
            question=question,
            answer=answer,
        )
        self.db.add(turn)
        await self.db.commit()
        return turn

    async def chat_history(self, owner_id: str, document_id: str) -> list[ChatTurn]:
        result = await self.db.execute(
            select(ChatTurn)
            .where(ChatTurn.document_id == document_id, ChatTurn.owner_id == owner_id)
            .order_by(ChatTurn.id.asc())
        )
        return list(result.scalars().all())

    async def count_turns(self, owner_id: str, document_id: str) -> int:
        result = await self.db.execute(
            select(func.count(ChatTurn.id)).where(
                ChatTurn.document_id == document_id, ChatTurn.owner_id == owner_id
            )
        )
        return result.scalar_one()

    async def save(self, document: Document) -> Document:
        """Flush pending changes to a loaded document."""
        self.db.add(document)
        await self.db.commit()
        return document
