"""
Guardrails — input validation for questions asked against a document.

Rejects empty and oversized questions before anything reaches the generator,
and strips control characters that break JSON round-trips.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional

from .config import get_settings

logger = logging.getLogger(__name__)

# Keep \t, \n, \r
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B-\x0C\x0E-\x1F\x7F]")


@dataclass
class GuardrailResult:
    """Result of a guardrail check."""
    allowed: bool
    reason: Optional[str] = None
    modified_input: Optional[str] = None


def check_question(question: Optional[str], owner_id: str = "") -> GuardrailResult:
    """
    Validate a question before it is sent to the generator.
    On success, `modified_input` holds the cleaned question.
    """
    if question is None:
        return GuardrailResult(allowed=False, reason="Question is required.")

    cleaned = _CONTROL_CHARS.sub("", question).strip()

    if not cleaned:
        return GuardrailResult(allowed=False, reason="Question is empty.")

    max_length = get_settings().max_question_length
    if len(cleaned) > max_length:
        logger.warning("Question rejected for %s: %d chars", owner_id or "unknown", len(cleaned))
        return GuardrailResult(
            allowed=False,
            reason=f"Question too long ({len(cleaned)} chars). Maximum is {max_length}.",
        )

    return GuardrailResult(allowed=True, modified_input=cleaned)
