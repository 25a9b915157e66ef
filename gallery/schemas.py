"""
Pydantic schemas for the gallery API.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel

from gallery.db import ImageRecord


class ImageResponse(BaseModel):
    id: str
    url: str
    uploadedAt: datetime

    @classmethod
    def from_record(cls, record: ImageRecord) -> "ImageResponse":
        return cls(id=record.image_id, url=record.url, uploadedAt=record.uploaded_at)


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None


class HealthResponse(BaseModel):
    status: Literal["ok"]
    service: str
