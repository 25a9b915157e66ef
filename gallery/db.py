"""
Image metadata store: a SQLAlchemy implementation and an in-memory one for
development and tests.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Optional, Protocol

from sqlalchemy import Column, DateTime, String, create_engine, delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from gallery.exceptions import PersistenceError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ImageRecord:
    image_id: str
    url: str
    public_id: Optional[str] = None
    uploaded_at: datetime = field(default_factory=utcnow)


class ImageStore(Protocol):
    """Interface for image metadata persistence."""

    def create(self, url: str, public_id: Optional[str] = None) -> ImageRecord:
        ...

    def list_images(self) -> list[ImageRecord]:
        """All records, most recently uploaded first."""
        ...

    def get(self, image_id: str) -> Optional[ImageRecord]:
        ...

    def delete(self, image_id: str) -> bool:
        """Remove a record; returns False if it did not exist."""
        ...


class InMemoryImageStore:
    """Simple in-memory image store for development and tests."""

    def __init__(self):
        self.images: Dict[str, ImageRecord] = {}

    def create(self, url: str, public_id: Optional[str] = None) -> ImageRecord:
        record = ImageRecord(
            image_id=uuid.uuid4().hex, url=url, public_id=public_id
        )
        self.images[record.image_id] = record
        return record

    def list_images(self) -> list[ImageRecord]:
        return sorted(
            self.images.values(), key=lambda r: r.uploaded_at, reverse=True
        )

    def get(self, image_id: str) -> Optional[ImageRecord]:
        return self.images.get(image_id)

    def delete(self, image_id: str) -> bool:
        return self.images.pop(image_id, None) is not None

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.images.clear()


class SqlImageStore:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres
    or SQLite for tests).
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlImageStore")
        engine_options = {}
        if database_url.startswith("sqlite"):
            # sessions are opened from worker threads
            engine_options["connect_args"] = {"check_same_thread": False}
            if ":memory:" in database_url:
                # one shared connection, or each thread sees an empty database
                engine_options["poolclass"] = StaticPool
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
            **engine_options,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            raise PersistenceError(details=str(exc)) from exc

    def _to_record(self, row: "ImageRow") -> ImageRecord:
        uploaded_at = row.uploaded_at
        # SQLite drops tzinfo on the way back out.
        if uploaded_at.tzinfo is None:
            uploaded_at = uploaded_at.replace(tzinfo=timezone.utc)
        return ImageRecord(
            image_id=row.id,
            url=row.url,
            public_id=row.public_id,
            uploaded_at=uploaded_at,
        )

    def create(self, url: str, public_id: Optional[str] = None) -> ImageRecord:
        try:
            with self.Session() as session:
                row = ImageRow(
                    id=uuid.uuid4().hex,
                    url=url,
                    public_id=public_id,
                    uploaded_at=utcnow(),
                )
                session.add(row)
                session.commit()
                session.refresh(row)
                return self._to_record(row)
        except SQLAlchemyError as exc:
            raise PersistenceError(details=str(exc)) from exc

    def list_images(self) -> list[ImageRecord]:
        try:
            with self.Session() as session:
                stmt = select(ImageRow).order_by(ImageRow.uploaded_at.desc())
                return [self._to_record(row) for row in session.scalars(stmt)]
        except SQLAlchemyError as exc:
            raise PersistenceError(details=str(exc)) from exc

    def get(self, image_id: str) -> Optional[ImageRecord]:
        try:
            with self.Session() as session:
                row = session.get(ImageRow, image_id)
                if not row:
                    return None
                return self._to_record(row)
        except SQLAlchemyError as exc:
            raise PersistenceError(details=str(exc)) from exc

    def delete(self, image_id: str) -> bool:
        try:
            with self.Session() as session:
                result = session.execute(
                    delete(ImageRow).where(ImageRow.id == image_id)
                )
                session.commit()
                return bool(result.rowcount)
        except SQLAlchemyError as exc:
            raise PersistenceError(details=str(exc)) from exc

    def close(self) -> None:
        self.engine.dispose()


Base = declarative_base()


class ImageRow(Base):
    __tablename__ = "images"

    id = Column(String(32), primary_key=True)
    url = Column(String(2048), nullable=False)
    public_id = Column(String(512), nullable=True)
    uploaded_at = Column(DateTime(timezone=True), nullable=False, index=True)
