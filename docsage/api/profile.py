"""
Profile API — age and interests used to personalize summaries.

GET /v1/profile — Current profile (defaults if none saved)
PUT /v1/profile — Create or replace the profile
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..core.auth import AuthenticatedUser
from ..core.dependencies import get_profiles, get_user
from ..exceptions import ProfileNotFound
from ..services.profiles import ProfileDirectory

logger = logging.getLogger(__name__)

profile_router = APIRouter(prefix="/profile", tags=["profile"])


class ProfileIn(BaseModel):
    age: Optional[int] = Field(default=None, ge=1, le=130)
    interests: list[str] = []


class ProfileOut(BaseModel):
    age: Optional[int] = None
    interests: list[str] = []
    exists: bool = True


@profile_router.get("", response_model=ProfileOut)
async def get_profile(
    user: AuthenticatedUser = Depends(get_user),
    profiles: ProfileDirectory = Depends(get_profiles),
):
    try:
        profile = await profiles.get_profile(user.user_id)
    except ProfileNotFound:
        return ProfileOut(exists=False)
    return ProfileOut(age=profile.age, interests=profile.interests)


@profile_router.put("", response_model=ProfileOut)
async def put_profile(
    request: ProfileIn,
    user: AuthenticatedUser = Depends(get_user),
    profiles: ProfileDirectory = Depends(get_profiles),
):
    profile = await profiles.upsert_profile(user.user_id, request.age, request.interests)
    return ProfileOut(age=profile.age, interests=profile.interests)
