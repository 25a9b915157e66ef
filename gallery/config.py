"""
Configuration and settings for the gallery backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Database (any SQLAlchemy URL; Postgres in production)
    database_url: Optional[str] = Field(default=None, alias="DATABASE_URL")

    # S3-compatible media store
    storage_endpoint: Optional[str] = Field(default=None, alias="STORAGE_ENDPOINT")
    storage_region: Optional[str] = Field(default=None, alias="STORAGE_REGION")
    storage_bucket: Optional[str] = Field(default=None, alias="STORAGE_BUCKET")
    storage_public_base_url: Optional[str] = Field(
        default=None, alias="STORAGE_PUBLIC_BASE_URL"
    )
    aws_access_key_id: Optional[str] = Field(default=None, alias="AWS_ACCESS_KEY_ID")
    aws_secret_access_key: Optional[str] = Field(
        default=None, alias="AWS_SECRET_ACCESS_KEY"
    )

    # Uploads
    media_folder: str = Field(default="gallery", alias="GALLERY_MEDIA_FOLDER")
    allowed_formats: list[str] = Field(
        default=["jpg", "jpeg", "png"], alias="GALLERY_ALLOWED_FORMATS"
    )
    max_upload_files: int = Field(default=10, alias="GALLERY_MAX_UPLOAD_FILES")

    # HTTP
    cors_allowed_origins: list[str] = Field(
        default=["*"], alias="CORS_ALLOWED_ORIGINS"
    )
    cors_allow_credentials: bool = Field(
        default=False, alias="CORS_ALLOW_CREDENTIALS"
    )
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=3000, alias="PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Development toggles
    use_in_memory_backends: bool = Field(
        default=False, alias="GALLERY_USE_IN_MEMORY_BACKENDS"
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
