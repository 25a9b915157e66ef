"""
Media store abstraction for S3-compatible object storage and in-memory testing.
"""

from __future__ import annotations

import logging
import posixpath
import uuid
from dataclasses import dataclass, field
from typing import Iterable, Optional, Protocol
from urllib.parse import urlparse

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from gallery.exceptions import MediaStoreError, UnsupportedFormatError

logger = logging.getLogger(__name__)

CONTENT_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
}


@dataclass(frozen=True)
class StoredMedia:
    """Result of a media store upload."""

    url: str
    public_id: str


class MediaStoreClient(Protocol):
    """Defines the operations the API needs from the media store."""

    def upload(
        self,
        data: bytes,
        *,
        filename: str,
        folder: str,
        allowed_formats: Iterable[str],
        content_type: Optional[str] = None,
    ) -> StoredMedia:
        ...

    def delete(self, public_id: str) -> None:
        ...


def file_extension(filename: str) -> str:
    """Lower-cased extension of ``filename`` without the dot, or ``""``."""
    _, ext = posixpath.splitext(filename or "")
    return ext[1:].lower()


def derive_public_id(url: str, folder: str) -> str:
    """
    Rebuild a public id from a stored URL: the last path segment with its
    extension stripped, prefixed with the folder.

    Only valid for assets uploaded by this service, whose object keys are
    ``<folder>/<name>.<ext>``.
    """
    segment = urlparse(url).path.rstrip("/").split("/")[-1]
    return f"{folder}/{segment.split('.')[0]}"


def _new_public_id(folder: str) -> str:
    return f"{folder}/{uuid.uuid4().hex}"


def _checked_format(filename: str, allowed_formats: Iterable[str]) -> str:
    ext = file_extension(filename)
    if ext not in {fmt.lower() for fmt in allowed_formats}:
        raise UnsupportedFormatError(
            details=f"{filename!r} is not one of {sorted(allowed_formats)}"
        )
    return ext


@dataclass
class InMemoryMediaStore:
    """Test double for media store interactions."""

    base_url: str = "https://media.example.test"
    objects: dict = field(default_factory=dict)
    deleted: list = field(default_factory=list)

    def upload(
        self,
        data: bytes,
        *,
        filename: str,
        folder: str,
        allowed_formats: Iterable[str],
        content_type: Optional[str] = None,
    ) -> StoredMedia:
        ext = _checked_format(filename, allowed_formats)
        public_id = _new_public_id(folder)
        key = f"{public_id}.{ext}"
        self.objects[key] = data
        return StoredMedia(url=f"{self.base_url}/{key}", public_id=public_id)

    def delete(self, public_id: str) -> None:
        for key in [k for k in self.objects if _belongs_to(k, public_id)]:
            del self.objects[key]
        self.deleted.append(public_id)


def _belongs_to(key: str, public_id: str) -> bool:
    return key == public_id or key.startswith(public_id + ".")


@dataclass
class S3MediaStore:
    """
    Media store backed by any S3-compatible bucket (AWS S3, MinIO, COS, R2).

    Objects are written to ``<public_id>.<ext>``; the public id carries the
    folder prefix but no extension.
    """

    bucket: str
    region: str = ""
    endpoint: str = ""
    access_key_id: str = ""
    secret_access_key: str = ""
    public_base_url: str = ""

    def __post_init__(self):
        config = Config(signature_version="s3v4")
        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint or None,
            region_name=self.region or None,
            aws_access_key_id=self.access_key_id or None,
            aws_secret_access_key=self.secret_access_key or None,
            config=config,
        )

    def public_url(self, key: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url.rstrip('/')}/{key}"
        if self.endpoint:
            return f"{self.endpoint.rstrip('/')}/{self.bucket}/{key}"
        region = self.region or "us-east-1"
        return f"https://{self.bucket}.s3.{region}.amazonaws.com/{key}"

    def upload(
        self,
        data: bytes,
        *,
        filename: str,
        folder: str,
        allowed_formats: Iterable[str],
        content_type: Optional[str] = None,
    ) -> StoredMedia:
        ext = _checked_format(filename, allowed_formats)
        public_id = _new_public_id(folder)
        key = f"{public_id}.{ext}"
        try:
            self._client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type
                or CONTENT_TYPES.get(ext, "application/octet-stream"),
            )
        except (BotoCoreError, ClientError) as exc:
            raise MediaStoreError(details=str(exc)) from exc
        logger.debug("Stored %s (%d bytes) as %s", filename, len(data), key)
        return StoredMedia(url=self.public_url(key), public_id=public_id)

    def delete(self, public_id: str) -> None:
        try:
            response = self._client.list_objects_v2(
                Bucket=self.bucket, Prefix=public_id
            )
            keys = [
                item["Key"]
                for item in response.get("Contents", [])
                if _belongs_to(item["Key"], public_id)
            ]
            for key in keys:
                self._client.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as exc:
            raise MediaStoreError(details=str(exc)) from exc
        logger.debug("Deleted %d object(s) for %s", len(keys), public_id)
