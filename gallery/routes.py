"""
HTTP routes for the gallery API.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile

from gallery.config import Settings, get_settings
from gallery.db import ImageRecord, ImageStore
from gallery.dependencies import get_image_store, get_media_store
from gallery.exceptions import (
    DeleteFailedError,
    GalleryException,
    NotFoundError,
    UploadFailedError,
)
from gallery.schemas import (
    ErrorResponse,
    HealthResponse,
    ImageResponse,
    MessageResponse,
)
from gallery.storage import MediaStoreClient, derive_public_id
from gallery.validation import ImageUpload, validate_batch

logger = logging.getLogger(__name__)

router = APIRouter()


def _failure_message(exc: Exception) -> str:
    if isinstance(exc, GalleryException):
        return exc.details or exc.message
    return str(exc)


def _store_one(
    upload: ImageUpload,
    media: MediaStoreClient,
    store: ImageStore,
    settings: Settings,
) -> ImageRecord:
    stored = media.upload(
        upload.data,
        filename=upload.storage_name,
        folder=settings.media_folder,
        allowed_formats=settings.allowed_formats,
        content_type=upload.content_type,
    )
    record = store.create(stored.url, public_id=stored.public_id)
    logger.info("Created image %s -> %s", record.image_id, record.url)
    return record


@router.post(
    "/upload",
    response_model=list[ImageResponse],
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def upload_images(
    images: Optional[list[UploadFile]] = File(None),
    store: ImageStore = Depends(get_image_store),
    media: MediaStoreClient = Depends(get_media_store),
    settings: Settings = Depends(get_settings),
):
    """
    Store every file of the batch and create one record per file.

    Files are stored concurrently. If any of them fails the request fails,
    but records already created for the other files are kept.
    """
    files = images or []
    batch = [(f.filename or "", await f.read(), f.content_type) for f in files]
    uploads = validate_batch(
        batch,
        allowed_formats=settings.allowed_formats,
        max_files=settings.max_upload_files,
    )

    loop = asyncio.get_running_loop()
    tasks = [
        loop.run_in_executor(
            None, functools.partial(_store_one, upload, media, store, settings)
        )
        for upload in uploads
    ]
    results = await asyncio.gather(*tasks, return_exceptions=True)
    failures = [r for r in results if isinstance(r, Exception)]
    if failures:
        first = failures[0]
        raise UploadFailedError(details=_failure_message(first)) from first

    return [ImageResponse.from_record(record) for record in results]


@router.get("/images", response_model=list[ImageResponse])
def list_images(store: ImageStore = Depends(get_image_store)):
    return [ImageResponse.from_record(record) for record in store.list_images()]


@router.delete(
    "/images/{image_id}",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def delete_image(
    image_id: str,
    store: ImageStore = Depends(get_image_store),
    media: MediaStoreClient = Depends(get_media_store),
    settings: Settings = Depends(get_settings),
):
    """
    Remove the stored asset, then the record. If the media store call fails
    the record is left in place.
    """
    try:
        record = store.get(image_id)
        if record is None:
            raise NotFoundError()

        public_id = record.public_id or derive_public_id(
            record.url, settings.media_folder
        )
        media.delete(public_id)
        store.delete(image_id)
    except NotFoundError:
        raise
    except Exception as exc:
        raise DeleteFailedError() from exc

    logger.info("Deleted image %s (%s)", image_id, public_id)
    return MessageResponse(message="Image deleted successfully")


@router.get("/health", response_model=HealthResponse)
def health():
    return HealthResponse(status="ok", service="gallery-backend")
