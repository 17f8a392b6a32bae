"""
Contracts for the collaborators the document lifecycle calls out to.

Concrete implementations:
  - TextExtractor    → services.extraction.DocumentTextExtractor
  - Generator        → services.generation.LLMGenerator
  - ProfileProvider  → services.profiles.ProfileDirectory
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class Extraction:
    text: str
    metadata: dict = field(default_factory=dict)


@dataclass
class Profile:
    age: Optional[int] = None
    interests: list[str] = field(default_factory=list)


class TextExtractor(ABC):
    @abstractmethod
    async def extract(self, file_bytes: bytes, filename: str) -> Extraction:
        """Turn an uploaded file into plain text. Raises ExtractionError."""
        ...


class Generator(ABC):
    @abstractmethod
    async def summarize(self, text: str, age: Optional[int], interests: str) -> str:
        """Summarize `text` for a reader of `age` interested in `interests`. Raises GenerationError."""
        ...

    @abstractmethod
    async def answer(self, text: str, question: str) -> str:
        """Answer `question` from `text`. Raises GenerationError."""
        ...


class ProfileProvider(ABC):
    @abstractmethod
    async def get_profile(self, owner_id: str) -> Profile:
        """Return the owner's profile. Raises ProfileNotFound."""
        ...
