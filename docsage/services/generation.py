"""
Summary and answer generation on top of the LLM client.

Prompts only ever see the document's own text. Anything the model says
beyond it is the model's problem, not the store's.
"""

import logging
from typing import Optional

from ..core.config import get_settings
from ..exceptions import GenerationError
from . import llm
from .adapters import Generator

logger = logging.getLogger(__name__)

SUMMARY_SYSTEM_PROMPT = """You summarize documents for one specific reader.

Write a clear, well-structured summary of the document the user provides.
- Match vocabulary and tone to the reader's age.
- Where it helps understanding, relate ideas to the reader's interests.
- Never invent facts that are not in the document.
- Use short paragraphs. Bullet points are fine for lists of facts."""

ANSWER_SYSTEM_PROMPT = """You answer questions about a single document.

Answer using only the document text provided. If the document does not
contain the answer, say so plainly instead of guessing. Be concise."""


def truncate(text: str, limit: Optional[int] = None) -> str:
    """Clip document text to the configured context size."""
    limit = limit or get_settings().max_context_chars
    if len(text) <= limit:
        return text
    return text[:limit] + "\n\n[Document truncated]"


def build_summary_messages(text: str, age: Optional[int], interests: str) -> list[dict]:
    reader = f"{age} years old" if age else "of unknown age"
    return [
        {"role": "system", "content": SUMMARY_SYSTEM_PROMPT},
        {
            "role": "user",
            "content": (
                f"Reader: {reader}, interested in {interests}.\n\n"
                f"Document:\n{truncate(text)}"
            ),
        },
    ]


def build_answer_messages(text: str, question: str) -> list[dict]:
    return [
        {"role": "system", "content": ANSWER_SYSTEM_PROMPT},
        {
            "role": "user",
            "content": f"Document:\n{truncate(text)}\n\nQuestion: {question}",
        },
    ]


class LLMGenerator(Generator):
    """Generator backed by the configured chat-completions provider."""

    def __init__(self, model: Optional[str] = None, temperature: Optional[float] = None):
        self.model = model
        self.temperature = temperature

    async def summarize(self, text: str, age: Optional[int], interests: str) -> str:
        return await self._complete(build_summary_messages(text, age, interests), "summary")

    async def answer(self, text: str, question: str) -> str:
        return await self._complete(build_answer_messages(text, question), "answer")

    async def _complete(self, messages: list[dict], kind: str) -> str:
        try:
            data = await llm.chat(
                messages=messages,
                model=self.model,
                temperature=self.temperature,
            )
        except Exception as e:
            logger.error("LLM %s generation failed: %s", kind, e)
            raise GenerationError(f"Could not generate {kind}: {e}") from e

        content = llm.message_content(data)
        if not content:
            raise GenerationError(f"LLM returned an empty {kind}")
        return content
