"""
database/base.py

Defines the declarative base class for SQLAlchemy ORM models
and the timestamp helper shared by the model modules.
"""

from datetime import datetime, timezone

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


def utcnow() -> datetime:
    """Timezone-aware current timestamp used for column defaults."""
    return datetime.now(timezone.utc)
