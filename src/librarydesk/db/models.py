"""Shared ORM base and column helpers.

Timestamps are stored as ISO-8601 strings in UTC with second precision so
they compare correctly as text inside SQL filters.
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


def generate_uuid() -> str:
    """Generate a UUID string for primary keys."""
    return str(uuid4())


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_iso(value: datetime) -> str:
    """Serialize a datetime to the stored ISO form (naive values are taken as UTC)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="seconds")


def from_iso(value: Optional[str]) -> Optional[datetime]:
    """Parse a stored ISO timestamp back into an aware datetime."""
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def now_iso() -> str:
    """Current UTC time in stored ISO form. Used as a column default."""
    return to_iso(utcnow())
