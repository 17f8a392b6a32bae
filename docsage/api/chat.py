"""
Document chat API.

POST /v1/documents/{id}/ask  — Ask a question about a document
GET  /v1/documents/{id}/chat — Full question/answer history, oldest first
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..core.auth import AuthenticatedUser
from ..core.dependencies import get_lifecycle, get_user
from ..models.document import ChatTurn
from ..services.lifecycle import DocumentLifecycle

logger = logging.getLogger(__name__)

chat_router = APIRouter(tags=["chat"])


class AskRequest(BaseModel):
    question: Optional[str] = None


class ChatTurnOut(BaseModel):
    question: str
    answer: str
    timestamp: datetime


class ChatHistoryOut(BaseModel):
    document_id: str
    turns: list[ChatTurnOut] = []


def to_turn(turn: ChatTurn) -> ChatTurnOut:
    return ChatTurnOut(question=turn.question, answer=turn.answer, timestamp=turn.asked_at)


@chat_router.post("/documents/{document_id}/ask", response_model=ChatTurnOut)
async def ask(
    document_id: str,
    request: AskRequest,
    user: AuthenticatedUser = Depends(get_user),
    lifecycle: DocumentLifecycle = Depends(get_lifecycle),
):
    """Answer a question from the document text and record it in the chat history."""
    turn = await lifecycle.ask(user.user_id, document_id, request.question)
    return to_turn(turn)


@chat_router.get("/documents/{document_id}/chat", response_model=ChatHistoryOut)
async def chat_history(
    document_id: str,
    user: AuthenticatedUser = Depends(get_user),
    lifecycle: DocumentLifecycle = Depends(get_lifecycle),
):
    turns = await lifecycle.get_chat_history(user.user_id, document_id)
    return ChatHistoryOut(document_id=document_id, turns=[to_turn(t) for t in turns])
