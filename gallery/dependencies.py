"""
Dependency wiring for the FastAPI app.

The image store and the media store client are process-wide singletons built
once by ``init_dependencies()`` during application startup.
"""

from __future__ import annotations

import logging

from gallery.config import Settings, get_settings
from gallery.db import ImageStore, InMemoryImageStore, SqlImageStore
from gallery.storage import InMemoryMediaStore, MediaStoreClient, S3MediaStore

logger = logging.getLogger(__name__)

_image_store: ImageStore | None = None
_media_store: MediaStoreClient | None = None


def _build_image_store(settings: Settings) -> ImageStore:
    if settings.use_in_memory_backends or not settings.database_url:
        logger.warning("No DATABASE_URL configured; using in-memory image store")
        return InMemoryImageStore()
    return SqlImageStore(settings.database_url)


def _build_media_store(settings: Settings) -> MediaStoreClient:
    if settings.use_in_memory_backends or not settings.storage_bucket:
        logger.warning("No STORAGE_BUCKET configured; using in-memory media store")
        return InMemoryMediaStore()
    return S3MediaStore(
        bucket=settings.storage_bucket,
        region=settings.storage_region or "",
        endpoint=settings.storage_endpoint or "",
        access_key_id=settings.aws_access_key_id or "",
        secret_access_key=settings.aws_secret_access_key or "",
        public_base_url=settings.storage_public_base_url or "",
    )


def init_dependencies(settings: Settings | None = None) -> None:
    """Connect the database and build the media store client, once."""
    global _image_store, _media_store
    settings = settings or get_settings()
    if _image_store is None:
        _image_store = _build_image_store(settings)
        logger.info("Image store ready: %s", type(_image_store).__name__)
    if _media_store is None:
        _media_store = _build_media_store(settings)
        logger.info("Media store ready: %s", type(_media_store).__name__)


def shutdown_dependencies() -> None:
    global _image_store, _media_store
    if isinstance(_image_store, SqlImageStore):
        _image_store.close()
    _image_store = None
    _media_store = None


def get_image_store() -> ImageStore:
    if _image_store is None:
        raise RuntimeError("Image store not initialised; call init_dependencies()")
    return _image_store


def get_media_store() -> MediaStoreClient:
    if _media_store is None:
        raise RuntimeError("Media store not initialised; call init_dependencies()")
    return _media_store
