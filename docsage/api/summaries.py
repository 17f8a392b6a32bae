"""
Summaries API.

POST /v1/documents/{id}/summary — Summarize (generated once, cached afterwards)
GET  /v1/documents/{id}/summary — Read an existing summary
GET  /v1/summaries              — List documents that have a summary
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..core.auth import AuthenticatedUser
from ..core.dependencies import get_lifecycle, get_user
from ..services.lifecycle import DocumentLifecycle

logger = logging.getLogger(__name__)

summaries_router = APIRouter(tags=["summaries"])


class SummaryOut(BaseModel):
    document_id: str
    summary: str
    cache_hit: Optional[bool] = None


class SummarizedDocument(BaseModel):
    id: str
    filename: str
    summary: str
    summarized_at: Optional[datetime] = None


@summaries_router.post("/documents/{document_id}/summary", response_model=SummaryOut)
async def summarize_document(
    document_id: str,
    user: AuthenticatedUser = Depends(get_user),
    lifecycle: DocumentLifecycle = Depends(get_lifecycle),
):
    """Summarize a document. Only the first call hits the LLM."""
    result = await lifecycle.summarize(user.user_id, document_id)
    return SummaryOut(
        document_id=document_id,
        summary=result.summary,
        cache_hit=result.cache_hit,
    )


@summaries_router.get("/documents/{document_id}/summary", response_model=SummaryOut)
async def get_summary(
    document_id: str,
    user: AuthenticatedUser = Depends(get_user),
    lifecycle: DocumentLifecycle = Depends(get_lifecycle),
):
    summary = await lifecycle.get_summary(user.user_id, document_id)
    return SummaryOut(document_id=document_id, summary=summary)


@summaries_router.get("/summaries", response_model=list[SummarizedDocument])
async def list_summaries(
    user: AuthenticatedUser = Depends(get_user),
    lifecycle: DocumentLifecycle = Depends(get_lifecycle),
):
    docs = await lifecycle.list_summarized(user.user_id)
    return [
        SummarizedDocument(
            id=d.id,
            filename=d.filename,
            summary=d.summary,
            summarized_at=d.summarized_at,
        )
        for d in docs
    ]
