"""
Main API router. Mounts all sub-routers.
"""

from fastapi import APIRouter, Depends

from ..core.dependencies import get_user

router = APIRouter()


# ── Health (no auth) ─────────────────────────────────────────────────

@router.get("/health")
async def health():
    return {"status": "ok", "service": "docsage"}


# ── Auth config (no auth) ───────────────────────────────────────────

@router.get("/auth/config")
async def auth_config():
    from ..core.config import get_settings
    from ..core.flags import get_flags

    flags = get_flags()
    if not flags.use_auth0:
        return {"auth_enabled": False, "message": "Dev mode — no auth required"}

    settings = get_settings()
    return {
        "auth_enabled": True,
        "domain": settings.auth0_domain,
        "audience": settings.auth0_audience,
    }


# ── V1 routes (auth required) ───────────────────────────────────────

from .chat import chat_router
from .documents import documents_router
from .profile import profile_router
from .summaries import summaries_router

router.include_router(documents_router, prefix="/v1", dependencies=[Depends(get_user)])
router.include_router(summaries_router, prefix="/v1", dependencies=[Depends(get_user)])
router.include_router(chat_router, prefix="/v1", dependencies=[Depends(get_user)])
router.include_router(profile_router, prefix="/v1", dependencies=[Depends(get_user)])
