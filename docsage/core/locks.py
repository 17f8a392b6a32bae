"""
Per-document locks. Redis lock OR in-process asyncio.Lock, controlled by FF_USE_REDIS.

Summaries are expensive to generate, so concurrent summarize requests for the
same document queue behind one lock instead of each calling the generator.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from .config import get_settings
from .flags import get_flags

logger = logging.getLogger(__name__)


class DocumentLocks(ABC):
    @abstractmethod
    def hold(self, document_id: str) -> "AsyncIterator[None]":
        """Async context manager holding the lock for one document."""
        ...


class LocalLocks(DocumentLocks):
    """asyncio.Lock per document id. Entries are dropped once nobody waits."""

    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiters: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, document_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(document_id, asyncio.Lock())
        self._waiters[document_id] = self._waiters.get(document_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[document_id] -= 1
            if self._waiters[document_id] == 0:
                del self._waiters[document_id]
                self._locks.pop(document_id, None)

    def __len__(self) -> int:
        return len(self._locks)


class RedisLocks(DocumentLocks):
    """Redis lock per document id. Expires after SUMMARY_LOCK_TIMEOUT seconds."""

    def __init__(self, redis_url: Optional[str] = None, timeout: Optional[float] = None):
        settings = get_settings()
        self._redis_url = redis_url or settings.redis_url
        self._timeout = timeout or settings.summary_lock_timeout
        self._client = None

    def _get_client(self):
        if self._client is None:
            import redis.asyncio as aioredis

            self._client = aioredis.from_url(
                self._redis_url,
                decode_responses=True,
                socket_connect_timeout=5,
            )
        return self._client

    @asynccontextmanager
    async def hold(self, document_id: str) -> AsyncIterator[None]:
        """
        Hold the document's lock for the duration of the block.

        The lock only narrows the window for duplicate generation. Losing it
        never fails the caller: a waiter that times out proceeds unlocked and
        an expired lock is not released, since the conditional summary write
        decides which result is kept.
        """
        from redis.exceptions import LockNotOwnedError

        client = self._get_client()
        lock = client.lock(
            f"docsage:summary:{document_id}",
            timeout=self._timeout,
            blocking_timeout=self._timeout,
        )
        acquired = await lock.acquire()
        if not acquired:
            logger.warning(
                "Timed out after %ss waiting for lock on %s, continuing without it",
                self._timeout, document_id,
            )
        try:
            yield
        finally:
            if acquired:
                try:
                    await lock.release()
                except LockNotOwnedError:
                    logger.warning("Lock on %s expired before release", document_id)

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("Redis connection closed")


_locks: Optional[DocumentLocks] = None


def get_locks() -> DocumentLocks:
    """Process-wide lock registry for the active backend."""
    global _locks
    if _locks is None:
        _locks = RedisLocks() if get_flags().use_redis else LocalLocks()
    return _locks


async def close_locks() -> None:
    global _locks
    if isinstance(_locks, RedisLocks):
        await _locks.close()
    _locks = None
