from adscope.utils.logger import get_logger, setup_logging
from adscope.utils.blob_store import BlobStore, LocalBlobStore, SupabaseBlobStore, build_blob_store
from adscope.utils.media_downloader import MediaDownloader

__all__ = [
    "get_logger",
    "setup_logging",
    "BlobStore",
    "LocalBlobStore",
    "SupabaseBlobStore",
    "build_blob_store",
    "MediaDownloader",
]
