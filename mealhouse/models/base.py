"""SQLAlchemy declarative Base and shared column helpers."""

import uuid
from datetime import UTC, datetime

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""

    pass


def new_id() -> str:
    """Opaque primary key for every entity."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(UTC)
