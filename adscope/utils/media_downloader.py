import httpx
from typing import Optional

from adscope.utils.blob_store import BlobStore
from adscope.utils.logger import get_logger

logger = get_logger("media_downloader")


class MediaDownloader:
    """Download ad images and persist them to blob storage."""

    def __init__(self, blob_store: BlobStore, timeout: float = 60.0, transport: httpx.AsyncBaseTransport = None):
        self.blob_store = blob_store
        self.timeout = timeout
        self.transport = transport
        self.client = None

    async def start(self):
        """Initialize the HTTP client."""
        self.client = httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            transport=self.transport,
            headers={
                "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
            }
        )
        await self.blob_store.start()

    async def stop(self):
        """Close the HTTP client."""
        if self.client:
            await self.client.aclose()
            self.client = None
        await self.blob_store.stop()

    async def persist(self, url: str, storage_path: str) -> Optional[str]:
        """Copy a remote image into blob storage and return its public URL.

        Returns None on any failure; the caller skips the creative.
        """
        if not url or not url.startswith("http"):
            logger.warning("media_url_invalid", url=(url or "")[:100], path=storage_path)
            return None

        if self.client is None:
            await self.start()

        try:
            logger.debug("downloading_file", url=url[:100], path=storage_path)
            response = await self.client.get(url)
            response.raise_for_status()

            content_type = response.headers.get("content-type", "image/jpeg").split(";")[0]
            if not content_type.startswith("image/"):
                content_type = "image/jpeg"

            await self.blob_store.upload(storage_path, response.content, content_type)

        except httpx.HTTPStatusError as e:
            logger.warning(
                "media_http_error",
                url=str(e.request.url)[:100],
                path=storage_path,
                status=e.response.status_code,
            )
            return None
        except Exception as e:
            logger.warning("media_persist_failed", url=url[:100], path=storage_path, error=str(e))
            return None

        logger.info("media_persisted", path=storage_path, size=len(response.content))
        return self.blob_store.public_url(storage_path)
