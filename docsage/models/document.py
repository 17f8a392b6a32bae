"""
Documents and their chat turns.

`text` is written once at ingest. `summary` goes from NULL to a value at most
once. Chat turns live in their own table so each question is a single INSERT;
the autoincrement id is the chronological order.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import String, Text, Integer, DateTime, JSON, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import Base
from .base import OwnedBase, utcnow


class Document(OwnedBase):
    __tablename__ = "documents"

    filename: Mapped[str] = mapped_column(String, nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    summarized_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    extraction: Mapped[dict] = mapped_column(JSON, nullable=True, default=dict)
    # extractor, used_ocr, char_count

    @property
    def is_summarized(self) -> bool:
        return self.summary is not None


class ChatTurn(Base):
    __tablename__ = "chat_turns"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    document_id: Mapped[str] = mapped_column(
        String, ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True
    )
    owner_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    question: Mapped[str] = mapped_column(Text, nullable=False)
    answer: Mapped[str] = mapped_column(Text, nullable=False)
    asked_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
