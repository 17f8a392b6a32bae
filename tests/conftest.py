"""Pytest configuration and fixtures."""
import asyncio
from typing import Optional

import fakeredis
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from docsage.core import database, locks as locks_module
from docsage.core.config import get_settings
from docsage.core.database import Base
from docsage.core.flags import get_flags
from docsage.core.locks import LocalLocks
from docsage.core.storage import LocalStorage
from docsage.exceptions import ExtractionError, GenerationError, ProfileNotFound
from docsage.services.adapters import (
    Extraction,
    Generator,
    Profile,
    ProfileProvider,
    TextExtractor,
)
from docsage.services.lifecycle import DocumentLifecycle
from docsage.services.store import DocumentStore


class FakeExtractor(TextExtractor):
    """Returns fixed text, or raises ExtractionError when `error` is set."""

    def __init__(self, text: str = "Photosynthesis turns light into chemical energy."):
        self.text = text
        self.error: Optional[str] = None
        self.calls: list[tuple[bytes, str]] = []

    async def extract(self, file_bytes: bytes, filename: str) -> Extraction:
        self.calls.append((file_bytes, filename))
        if self.error:
            raise ExtractionError(self.error)
        return Extraction(text=self.text, metadata={"extractor": "fake"})


class FakeGenerator(Generator):
    """Numbered summaries so repeated generation is detectable."""

    def __init__(self):
        self.summary_calls: list[tuple[Optional[int], str]] = []
        self.questions: list[str] = []
        self.fail_summaries = 0
        self.fail_answers = False
        self.delay = 0.0

    async def summarize(self, text: str, age: Optional[int], interests: str) -> str:
        self.summary_calls.append((age, interests))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_summaries:
            self.fail_summaries -= 1
            raise GenerationError("model unavailable")
        return f"Summary #{len(self.summary_calls)} ({len(text)} chars)"

    async def answer(self, text: str, question: str) -> str:
        if self.fail_answers:
            raise GenerationError("model unavailable")
        self.questions.append(question)
        return f"Answer to: {question}"


class StaticProfiles(ProfileProvider):
    def __init__(self, profiles: Optional[dict] = None):
        self.profiles = profiles or {}

    async def get_profile(self, owner_id: str) -> Profile:
        if owner_id not in self.profiles:
            raise ProfileNotFound(owner_id)
        return self.profiles[owner_id]


@pytest.fixture(autouse=True)
def test_env(monkeypatch, tmp_path):
    """Local fallbacks for every external service."""
    monkeypatch.setenv("FF_USE_AUTH0", "false")
    monkeypatch.setenv("FF_USE_S3", "false")
    monkeypatch.setenv("FF_USE_REDIS", "false")
    monkeypatch.setenv("FF_USE_OCR", "false")
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'app.db'}")
    monkeypatch.setenv("LOCAL_STORAGE_PATH", str(tmp_path / "local_storage"))
    monkeypatch.setattr(database, "_engine", None)
    monkeypatch.setattr(database, "_session_factory", None)
    monkeypatch.setattr(locks_module, "_locks", None)
    get_settings.cache_clear()
    get_flags.cache_clear()
    yield
    get_settings.cache_clear()
    get_flags.cache_clear()


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'store.db'}")
    from docsage import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def extractor():
    return FakeExtractor()


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def profiles():
    return StaticProfiles()


@pytest.fixture
def staging_dir(tmp_path):
    return tmp_path / "staging"


@pytest.fixture
def storage(staging_dir):
    return LocalStorage(str(staging_dir))


@pytest.fixture
def doc_locks():
    return LocalLocks()


@pytest.fixture
def make_lifecycle(extractor, generator, profiles, storage, doc_locks):
    """Build a lifecycle service on a given session, sharing all collaborators."""

    def _make(session: AsyncSession) -> DocumentLifecycle:
        return DocumentLifecycle(
            store=DocumentStore(session),
            extractor=extractor,
            generator=generator,
            profiles=profiles,
            storage=storage,
            locks=doc_locks,
        )

    return _make


@pytest.fixture
def lifecycle(make_lifecycle, db):
    return make_lifecycle(db)


@pytest.fixture
def staged_files(staging_dir):
    """Files currently left in the staging directory."""

    def _list() -> list:
        if not staging_dir.exists():
            return []
        return [p for p in staging_dir.rglob("*") if p.is_file()]

    return _list


@pytest_asyncio.fixture
async def fake_redis():
    client = fakeredis.FakeAsyncRedis(decode_responses=True)
    yield client
    await client.aclose()
