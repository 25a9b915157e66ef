"""Exception types for the gallery backend.

Every application error carries the HTTP status and the ``error`` string the
API returns for it, so the exception handler in ``gallery.app`` can render
them uniformly::

    raise NotFoundError()                      # 404 {"error": "Image not found"}
    raise UploadFailedError(details="boom")    # 500 {"error": "Upload failed", ...}
"""

from __future__ import annotations

from typing import Optional


class GalleryException(Exception):
    """Base exception for the gallery backend.

    Attributes:
        status_code: HTTP status code to return
        error: Short error string placed in the response's ``error`` field
        details: Optional underlying message placed in ``details``
    """

    status_code: int = 500
    error: str = "Internal server error"

    def __init__(
        self, message: Optional[str] = None, *, details: Optional[str] = None
    ) -> None:
        self.message = message or self.error
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body = {"error": self.error}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationFailure(GalleryException):
    """Raised when an upload is rejected before reaching the media store."""

    status_code = 400
    error = "Invalid upload"


class UnsupportedFormatError(ValidationFailure):
    """Raised when a file's image format is not in the allowed set."""

    error = "Unsupported file format"


class TooManyFilesError(ValidationFailure):
    """Raised when a single request carries more files than allowed."""

    error = "Too many files"


class ImageTooLargeError(ValidationFailure):
    """Raised when an image declares more pixels than may be decoded safely."""

    error = "Image too large"


class NotFoundError(GalleryException):
    """Raised when an image record does not exist."""

    status_code = 404
    error = "Image not found"


class MediaStoreError(GalleryException):
    """Raised when the media store is unreachable or rejects an operation."""

    error = "Media store request failed"


class PersistenceError(GalleryException):
    """Raised when the database is unreachable or rejects an operation."""

    error = "Database request failed"


class UploadFailedError(GalleryException):
    """Raised when any file of an upload batch fails to store or persist."""

    error = "Upload failed"


class DeleteFailedError(GalleryException):
    """Raised when deleting an image fails after the record was found."""

    error = "Failed to delete image"
