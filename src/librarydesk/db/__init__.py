"""Database module for local SQLite storage."""

from .models import Base, generate_uuid, utcnow, to_iso, from_iso, now_iso
from .sqlite import Database, get_db, reset_db

__all__ = [
    "Base",
    "generate_uuid",
    "utcnow",
    "to_iso",
    "from_iso",
    "now_iso",
    "Database",
    "get_db",
    "reset_db",
]
