"""
Upload batch validation.

Runs before any media store call so that a rejected request stores nothing.
"""

from __future__ import annotations

import io
import posixpath
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from PIL import Image, UnidentifiedImageError

from gallery.exceptions import (
    ImageTooLargeError,
    TooManyFilesError,
    UnsupportedFormatError,
)

# Pillow format name -> file extensions it may be uploaded as
PIL_FORMAT_EXTENSIONS = {
    "JPEG": ("jpg", "jpeg"),
    # multi-picture JPEG written by most phone cameras
    "MPO": ("jpg", "jpeg"),
    "PNG": ("png",),
    "GIF": ("gif",),
    "WEBP": ("webp",),
    "BMP": ("bmp",),
    "TIFF": ("tif", "tiff"),
}


@dataclass(frozen=True)
class ImageUpload:
    """A validated file ready to be sent to the media store."""

    filename: str
    data: bytes
    extension: str
    content_type: Optional[str] = None

    @property
    def storage_name(self) -> str:
        """Filename carrying the detected extension rather than the declared one."""
        stem, _ = posixpath.splitext(posixpath.basename(self.filename or "image"))
        return f"{stem or 'image'}.{self.extension}"


def sniff_extension(data: bytes, filename: str = "") -> Optional[str]:
    """
    Detect the image format of ``data`` and return the extension to store it
    under. Keeps the declared extension when it is an alias of the detected
    format (``.jpeg`` vs ``.jpg``). Returns None if the bytes are not an image.

    Raises ImageTooLargeError when the header declares more pixels than
    Pillow's decompression bomb limit allows.
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = img.format
    except Image.DecompressionBombError as exc:
        raise ImageTooLargeError(details=f"{filename!r}: {exc}") from exc
    except (UnidentifiedImageError, OSError):
        return None

    extensions = PIL_FORMAT_EXTENSIONS.get(fmt or "", ((fmt or "").lower(),))
    declared = posixpath.splitext(filename or "")[1][1:].lower()
    if declared in extensions:
        return declared
    return extensions[0]


def validate_batch(
    files: Sequence[tuple[str, bytes, Optional[str]]],
    *,
    allowed_formats: Iterable[str],
    max_files: int,
) -> list[ImageUpload]:
    """
    Check an upload batch of ``(filename, data, content_type)`` tuples.

    Raises TooManyFilesError or UnsupportedFormatError for the whole batch if
    any single file fails; otherwise returns one ImageUpload per file.
    """
    if len(files) > max_files:
        raise TooManyFilesError(
            details=f"At most {max_files} files per request, got {len(files)}"
        )

    allowed = {fmt.lower() for fmt in allowed_formats}
    uploads = []
    for filename, data, content_type in files:
        extension = sniff_extension(data, filename)
        if extension is None:
            raise UnsupportedFormatError(
                details=f"{filename!r} is not a recognisable image"
            )
        if extension not in allowed:
            raise UnsupportedFormatError(
                details=(
                    f"{filename!r} is {extension}; "
                    f"allowed: {', '.join(sorted(allowed))}"
                )
            )
        uploads.append(
            ImageUpload(
                filename=filename,
                data=data,
                extension=extension,
                content_type=content_type,
            )
        )
    return uploads
