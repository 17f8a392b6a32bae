"""
Documents API.

POST /v1/documents/upload — Upload a file, extract its text, store a document
GET  /v1/documents        — List the caller's documents
GET  /v1/documents/{id}   — Get one document with its text
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pydantic import BaseModel

from ..core.auth import AuthenticatedUser
from ..core.config import get_settings
from ..core.dependencies import get_lifecycle, get_user
from ..models.document import Document
from ..services.extraction import SUPPORTED_EXTENSIONS
from ..services.lifecycle import DocumentLifecycle

logger = logging.getLogger(__name__)

documents_router = APIRouter(tags=["documents"])


class DocumentOut(BaseModel):
    id: str
    filename: str
    char_count: int = 0
    summarized: bool = False
    created_at: Optional[datetime] = None


class DocumentDetail(DocumentOut):
    text: str
    summary: Optional[str] = None
    extraction: dict = {}


class DocumentListOut(BaseModel):
    found: bool
    documents: list[DocumentOut] = []


def to_out(doc: Document) -> DocumentOut:
    return DocumentOut(
        id=doc.id,
        filename=doc.filename,
        char_count=len(doc.text or ""),
        summarized=doc.is_summarized,
        created_at=doc.created_at,
    )


def to_detail(doc: Document) -> DocumentDetail:
    return DocumentDetail(
        **to_out(doc).model_dump(),
        text=doc.text,
        summary=doc.summary,
        extraction=doc.extraction or {},
    )


@documents_router.post("/documents/upload", response_model=DocumentDetail)
async def upload_document(
    file: UploadFile = File(...),
    user: AuthenticatedUser = Depends(get_user),
    lifecycle: DocumentLifecycle = Depends(get_lifecycle),
):
    """Upload a document. Text is extracted once and stored with the document."""
    filename = file.filename or "document"
    ext = Path(filename).suffix.lower()
    if ext not in SUPPORTED_EXTENSIONS:
        raise HTTPException(
            status_code=400,
            detail=f"File type '{ext or filename}' not allowed. "
                   f"Supported: {', '.join(sorted(SUPPORTED_EXTENSIONS))}",
        )

    file_bytes = await file.read()

    max_bytes = get_settings().max_upload_mb * 1024 * 1024
    if len(file_bytes) > max_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"File too large (max {get_settings().max_upload_mb}MB)",
        )

    doc = await lifecycle.ingest(user.user_id, filename, file_bytes)
    return to_detail(doc)


@documents_router.get("/documents", response_model=DocumentListOut)
async def list_documents(
    user: AuthenticatedUser = Depends(get_user),
    lifecycle: DocumentLifecycle = Depends(get_lifecycle),
):
    """List all documents uploaded by the current user, oldest first."""
    listing = await lifecycle.list_documents(user.user_id)

    if not listing.found and get_settings().empty_list_not_found:
        raise HTTPException(status_code=404, detail="No documents found for this user")

    return DocumentListOut(
        found=listing.found,
        documents=[to_out(d) for d in listing.documents],
    )


@documents_router.get("/documents/{document_id}", response_model=DocumentDetail)
async def get_document(
    document_id: str,
    user: AuthenticatedUser = Depends(get_user),
    lifecycle: DocumentLifecycle = Depends(get_lifecycle),
):
    doc = await lifecycle.get_document(user.user_id, document_id)
    return to_detail(doc)
