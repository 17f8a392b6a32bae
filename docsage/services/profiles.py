"""
User profile directory — age and interests used to personalize summaries.
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import ProfileNotFound
from ..models.user import UserProfile
from .adapters import Profile, ProfileProvider

logger = logging.getLogger(__name__)


def _clean_interests(interests: Optional[list]) -> list[str]:
    seen: list[str] = []
    for item in interests or []:
        value = str(item).strip()
        if value and value not in seen:
            seen.append(value)
    return seen


class ProfileDirectory(ProfileProvider):
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _find(self, owner_id: str) -> Optional[UserProfile]:
        result = await self.db.execute(
            select(UserProfile).where(UserProfile.owner_id == owner_id)
        )
        return result.scalar_one_or_none()

    async def get_profile(self, owner_id: str) -> Profile:
        row = await self._find(owner_id)
        if row is None:
            raise ProfileNotFound(owner_id)
        return Profile(age=row.age, interests=_clean_interests(row.interests))

    async def upsert_profile(
        self, owner_id: str, age: Optional[int], interests: Optional[list[str]]
    ) -> Profile:
        row = await self._find(owner_id)
        if row is None:
            row = UserProfile(owner_id=owner_id)
            self.db.add(row)
        row.age = age
        row.interests = _clean_interests(interests)
        await self.db.commit()
        logger.info("Profile saved for %s (age=%s, %d interests)", owner_id, age, len(row.interests))
        return Profile(age=row.age, interests=row.interests)
