"""
Text extraction from uploaded documents.
- pdfplumber for normal PDFs (free, local)
- AIML OCR (Google Document AI) for scanned PDFs (flagged)
- python-docx for Word files, plain decode for text
"""

import base64
import logging
import mimetypes
from io import BytesIO
from pathlib import Path

import httpx

from ..core.config import get_settings
from ..core.flags import get_flags
from ..exceptions import ExtractionError
from .adapters import Extraction, TextExtractor

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = {".pdf", ".docx", ".txt", ".md"}
OCR_MIN_CHARS = 100


class DocumentTextExtractor(TextExtractor):
    """Picks an extractor by file extension."""

    async def extract(self, file_bytes: bytes, filename: str) -> Extraction:
        ext = Path(filename).suffix.lower()
        metadata = {"filename": filename, "used_ocr": False}

        if ext == ".pdf":
            text = _extract_pdf(file_bytes)
            metadata["extractor"] = "pdfplumber"

            # If text is too short, might be a scanned PDF → try OCR
            if get_flags().use_ocr and len(text.strip()) < OCR_MIN_CHARS:
                ocr_text = await _ocr_extract(file_bytes, filename)
                if ocr_text and len(ocr_text.strip()) > len(text.strip()):
                    text = ocr_text
                    metadata["used_ocr"] = True
                    metadata["extractor"] = "aiml_ocr"

        elif ext == ".docx":
            text = _extract_docx(file_bytes)
            metadata["extractor"] = "python-docx"

        elif ext in (".txt", ".md"):
            text = file_bytes.decode("utf-8", errors="replace")
            metadata["extractor"] = "plaintext"

        else:
            raise ExtractionError(f"Unsupported file type '{ext or filename}'")

        text = text.strip()
        metadata["char_count"] = len(text)
        return Extraction(text=text, metadata=metadata)


def _extract_pdf(file_bytes: bytes) -> str:
    """Extract text from PDF using pdfplumber, table rows included."""
    import pdfplumber

    try:
        pages_text = []
        with pdfplumber.open(BytesIO(file_bytes)) as pdf:
            for page in pdf.pages:
                text = page.extract_text() or ""
                for table in page.extract_tables() or []:
                    for row in table:
                        if row:
                            text += "\n" + " | ".join(
                                str(cell) if cell else "" for cell in row
                            )
                pages_text.append(text)
        return "\n\n".join(pages_text)
    except Exception as e:
        logger.error("pdfplumber extraction failed: %s", e)
        raise ExtractionError(f"Could not read PDF: {e}") from e


def _extract_docx(file_bytes: bytes) -> str:
    """Extract text from DOCX."""
    import docx

    try:
        doc = docx.Document(BytesIO(file_bytes))
        return "\n\n".join(para.text for para in doc.paragraphs if para.text)
    except Exception as e:
        logger.error("DOCX extraction failed: %s", e)
        raise ExtractionError(f"Could not read DOCX: {e}") from e


async def _ocr_extract(file_bytes: bytes, filename: str) -> str:
    """OCR via AIML API (Google Document AI). Only called if FF_USE_OCR=true.

    OCR is a best-effort fallback: failures are logged and the pdfplumber
    result stands.
    """
    settings = get_settings()
    if not settings.aiml_api_key:
        logger.warning("OCR requested but AIML_API_KEY not set")
        return ""

    encoded = base64.b64encode(file_bytes).decode("utf-8")
    mime_type = mimetypes.guess_type(filename)[0] or "application/pdf"

    try:
        async with httpx.AsyncClient(timeout=60) as client:
            resp = await client.post(
                f"{settings.aiml_base_url.rstrip('/')}/ocr",
                json={
                    "model": settings.aiml_ocr_model,
                    "document": encoded,
                    "mimeType": mime_type,
                },
                headers={
                    "Authorization": f"Bearer {settings.aiml_api_key}",
                    "Content-Type": "application/json",
                },
            )
    except httpx.HTTPError as e:
        logger.error("OCR request failed: %s", e)
        return ""

    if resp.status_code not in (200, 201):
        logger.error("OCR API error: %s %s", resp.status_code, resp.text[:200])
        return ""

    result = resp.json()
    if result.get("text"):
        return result["text"]

    texts = []
    for page in result.get("pages", []):
        if page.get("markdown"):
            texts.append(page["markdown"])
        elif page.get("text"):
            texts.append(page["text"])
    return "\n\n".join(texts)
