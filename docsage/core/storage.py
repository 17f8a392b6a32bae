"""
Temporary staging for raw uploads. S3 OR local filesystem, controlled by FF_USE_S3.

Uploaded bytes only live here while text is being extracted. Use `staged()`
so the object is removed on every exit path.
"""

import asyncio
import logging
import mimetypes
import uuid
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

from .config import get_settings
from .flags import get_flags

logger = logging.getLogger(__name__)


class StorageBackend(ABC):
    @abstractmethod
    async def upload(
        self, file_bytes: bytes, filename: str, owner_id: str, folder: str = ""
    ) -> str:
        """Store file. Returns the key of the stored object."""
        ...

    @abstractmethod
    async def read(self, key: str) -> bytes:
        """Read back a stored object."""
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove a stored object. Missing objects are not an error."""
        ...

    @asynccontextmanager
    async def staged(
        self, file_bytes: bytes, filename: str, owner_id: str
    ) -> AsyncIterator[str]:
        """Stage an upload for the duration of the block, then delete it."""
        key = await self.upload(file_bytes, filename, owner_id, folder="uploads")
        try:
            yield key
        finally:
            try:
                await self.delete(key)
            except Exception as e:
                logger.error("Failed to release staged upload %s: %s", key, e)
                raise


def _object_name(filename: str) -> str:
    return f"{uuid.uuid4().hex[:12]}{Path(filename).suffix.lower()}"


class S3Storage(StorageBackend):
    def __init__(self):
        self._client = None

    def _get_client(self):
        if self._client is None:
            import boto3

            settings = get_settings()
            kwargs = {"region_name": settings.aws_region}
            if settings.aws_access_key_id:
                kwargs["aws_access_key_id"] = settings.aws_access_key_id
                kwargs["aws_secret_access_key"] = settings.aws_secret_access_key
            self._client = boto3.client("s3", **kwargs)
        return self._client

    async def upload(
        self, file_bytes: bytes, filename: str, owner_id: str, folder: str = ""
    ) -> str:
        settings = get_settings()
        unique = _object_name(filename)
        key = f"{owner_id}/{folder}/{unique}" if folder else f"{owner_id}/{unique}"
        key = key.strip("/")

        client = self._get_client()
        # boto3 is blocking; keep it off the event loop
        await asyncio.to_thread(
            client.put_object,
            Bucket=settings.s3_bucket_name,
            Key=key,
            Body=file_bytes,
            ContentType=_guess_content_type(filename),
        )
        logger.info("Staged in S3: %s", key)
        return key

    async def read(self, key: str) -> bytes:
        settings = get_settings()
        client = self._get_client()
        obj = await asyncio.to_thread(
            client.get_object, Bucket=settings.s3_bucket_name, Key=key
        )
        return await asyncio.to_thread(obj["Body"].read)

    async def delete(self, key: str) -> None:
        settings = get_settings()
        client = self._get_client()
        await asyncio.to_thread(
            client.delete_object, Bucket=settings.s3_bucket_name, Key=key
        )
        logger.info("Released S3 object: %s", key)


class LocalStorage(StorageBackend):
    def __init__(self, base_path: Optional[str] = None):
        self.base_path = Path(base_path or get_settings().local_storage_path)

    async def upload(
        self, file_bytes: bytes, filename: str, owner_id: str, folder: str = ""
    ) -> str:
        dir_path = self.base_path / owner_id
        if folder:
            dir_path = dir_path / folder
        dir_path.mkdir(parents=True, exist_ok=True)

        file_path = dir_path / _object_name(filename)
        file_path.write_bytes(file_bytes)

        result = str(file_path)
        logger.info("Staged locally: %s", result)
        return result

    async def read(self, key: str) -> bytes:
        return Path(key).read_bytes()

    async def delete(self, key: str) -> None:
        Path(key).unlink(missing_ok=True)
        logger.info("Released local file: %s", key)


def get_storage() -> StorageBackend:
    """Return the active storage backend based on feature flags."""
    flags = get_flags()
    if flags.use_s3:
        return S3Storage()
    return LocalStorage()


def _guess_content_type(filename: str) -> str:
    ct, _ = mimetypes.guess_type(filename)
    return ct or "application/octet-stream"
