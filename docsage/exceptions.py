"""Error types raised by the document lifecycle and its adapters."""


class DocSageError(Exception):
    """Base exception for document lifecycle errors."""

    code = "error"


class InvalidInput(DocSageError):
    """Raised for an empty upload, an empty question, or similar bad input."""

    code = "invalid_input"


class ExtractionFailed(DocSageError):
    """Raised when an upload yields no usable text."""

    code = "extraction_failed"


class GenerationFailed(DocSageError):
    """Raised when a summary or answer could not be generated."""

    code = "generation_failed"


class NotFoundOrForbidden(DocSageError):
    """Raised when a document does not exist or belongs to someone else.

    The two cases are deliberately the same error so callers cannot probe
    for other users' document ids.
    """

    code = "not_found"

    def __init__(self, document_id: str = ""):
        self.document_id = document_id
        super().__init__("Document not found")


class NotYetSummarized(DocSageError):
    """Raised when a summary is read before one has been generated."""

    code = "not_summarized"

    def __init__(self, document_id: str = ""):
        self.document_id = document_id
        super().__init__("Document has not been summarized yet")


# ── Adapter-side errors ───────────────────────────────────────────────


class ExtractionError(Exception):
    """Raised by a text extractor that cannot read a file."""
    pass


class GenerationError(Exception):
    """Raised by a generator when the model call fails or returns nothing."""
    pass


class ProfileNotFound(Exception):
    """Raised by the profile directory when a user has no profile."""
    pass
