"""
FastAPI dependencies. Injected into route handlers.
"""

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from .auth import AuthenticatedUser, get_current_user
from .database import get_db as _get_db
from .locks import DocumentLocks, get_locks as _get_locks
from .storage import StorageBackend, get_storage as _get_storage
from ..services.adapters import Generator, TextExtractor
from ..services.extraction import DocumentTextExtractor
from ..services.generation import LLMGenerator
from ..services.lifecycle import DocumentLifecycle
from ..services.profiles import ProfileDirectory
from ..services.store import DocumentStore


async def get_db() -> AsyncSession:
    """Yields an async DB session per request."""
    async for session in _get_db():
        yield session


async def get_user(
    authorization: str = Header(default=""),
) -> AuthenticatedUser:
    """
    Resolve authenticated user from Authorization header.
    Returns dev user if FF_USE_AUTH0=false.
    """
    try:
        return await get_current_user(authorization)
    except PermissionError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )


def get_storage_dep() -> StorageBackend:
    """Returns the active staging backend (S3 or local)."""
    return _get_storage()


def get_locks_dep() -> DocumentLocks:
    return _get_locks()


def get_extractor() -> TextExtractor:
    return DocumentTextExtractor()


def get_generator() -> Generator:
    return LLMGenerator()


def get_profiles(db: AsyncSession = Depends(get_db)) -> ProfileDirectory:
    return ProfileDirectory(db)


def get_lifecycle(
    db: AsyncSession = Depends(get_db),
    profiles: ProfileDirectory = Depends(get_profiles),
    extractor: TextExtractor = Depends(get_extractor),
    generator: Generator = Depends(get_generator),
    storage: StorageBackend = Depends(get_storage_dep),
    locks: DocumentLocks = Depends(get_locks_dep),
) -> DocumentLifecycle:
    """Lifecycle service bound to this request's session."""
    return DocumentLifecycle(
        store=DocumentStore(db),
        extractor=extractor,
        generator=generator,
        profiles=profiles,
        storage=storage,
        locks=locks,
    )
