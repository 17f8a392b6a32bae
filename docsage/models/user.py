"""
User profiles. Age and interests personalize the tone of summaries.
"""

from typing import Optional

from sqlalchemy import Integer, JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import OwnedBase


class UserProfile(OwnedBase):
    __tablename__ = "user_profiles"

    owner_id: Mapped[str] = mapped_column(String, nullable=False, unique=True, index=True)
    age: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    interests: Mapped[list] = mapped_column(JSON, nullable=True, default=list)
