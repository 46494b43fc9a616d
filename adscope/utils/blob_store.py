import asyncio
from pathlib import Path
from typing import Optional

import aiofiles
from supabase import Client, create_client

from adscope.utils.logger import get_logger

logger = get_logger("blob_store")


class BlobStore:
    """Object storage for ad images. Uploads overwrite existing objects."""

    async def start(self):
        pass

    async def stop(self):
        pass

    async def upload(self, path: str, data: bytes, content_type: str = "image/jpeg"):
        raise NotImplementedError

    def public_url(self, path: str) -> str:
        raise NotImplementedError


class SupabaseBlobStore(BlobStore):
    """Supabase Storage bucket, authenticated with the service role key."""

    def __init__(self, base_url: str, service_key: str, bucket: str = "ad-images"):
        self.base_url = base_url
        self.service_key = service_key
        self.bucket = bucket
        self.supabase: Optional[Client] = None

    def _bucket(self):
        if self.supabase is None:
            self.supabase = create_client(self.base_url, self.service_key)
        return self.supabase.storage.from_(self.bucket)

    async def upload(self, path: str, data: bytes, content_type: str = "image/jpeg"):
        # The storage client is synchronous; keep it off the event loop
        await asyncio.to_thread(
            self._bucket().upload,
            path,
            data,
            {"content-type": content_type, "upsert": "true"},
        )
        logger.debug("blob_uploaded", bucket=self.bucket, path=path, size=len(data))

    def public_url(self, path: str) -> str:
        return self._bucket().get_public_url(path)


class LocalBlobStore(BlobStore):
    """Filesystem storage under a base directory, served from ``public_base_url``."""

    def __init__(self, base_path: Path, public_base_url: str):
        self.base_path = Path(base_path)
        self.public_base_url = public_base_url.rstrip("/")

    async def upload(self, path: str, data: bytes, content_type: str = "image/jpeg"):
        file_path = self.base_path / path
        file_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(file_path, "wb") as f:
            await f.write(data)
        logger.debug("blob_written", path=str(file_path), size=len(data))

    def public_url(self, path: str) -> str:
        return f"{self.public_base_url}/{path}"


def build_blob_store(settings) -> BlobStore:
    if settings.storage_backend == "local":
        return LocalBlobStore(settings.media_base_path, settings.storage_url)
    return SupabaseBlobStore(
        settings.storage_url,
        settings.storage_service_key,
        bucket=settings.storage_bucket,
    )
