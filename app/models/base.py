"""
Base Model Module

This module provides a base class for all SQLAlchemy models with common fields:
- id: Primary key (UUID)
- created_at: Timestamp when record was created
- updated_at: Timestamp when record was last updated

It also exposes JSONType, which is JSONB on PostgreSQL and plain JSON
elsewhere (SQLite in tests).
"""

import uuid
from sqlalchemy import JSON, Column, DateTime, Uuid, func
from sqlalchemy.dialects.postgresql import JSONB

from app.db.database import Base


JSONType = JSON().with_variant(JSONB(), "postgresql")


class TimestampMixin:
    """created_at / updated_at columns for tables with their own key type."""

    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False
    )


class BaseModel(TimestampMixin, Base):
    """
    Abstract base model class with a UUID primary key and timestamps.

    Attributes:
        id (UUID): Primary key, auto-generated UUID
        created_at (DateTime): Timestamp set automatically when record is created
        updated_at (DateTime): Timestamp updated automatically when record is modified
    """

    __abstract__ = True

    id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        nullable=False,
        index=True
    )

    def __repr__(self):
        return f"<{self.__class__.__name__}(id={self.id})>"
