"""SQLite database operations.

Handles database connection, session management, and the retrying unit of
work used by every mutating circulation operation.
"""

import logging
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Generator, Optional, TypeVar

from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy.pool import StaticPool

from ..config import get_config
from ..errors import ConcurrencyError
from .models import Base

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Unique index that serialises open transactions for a (user, book) pair.
# SQLite names the columns rather than the index in its error message.
OPEN_PAIR_INDEX = "uq_transactions_open_pair"
OPEN_PAIR_COLUMNS = "transactions.user_id, transactions.book_id"


def is_write_conflict(error: Exception) -> bool:
    """Whether a database error means a concurrent writer got there first.

    Stale version counters, a locked database and a clash on the open-pair
    index are conflicts worth retrying. Any other constraint failure is
    deterministic and is not.
    """
    if isinstance(error, StaleDataError):
        return True
    message = str(getattr(error, "orig", None) or error)
    if isinstance(error, OperationalError):
        return "locked" in message
    if isinstance(error, IntegrityError):
        return OPEN_PAIR_INDEX in message or OPEN_PAIR_COLUMNS in message
    return False


class Database:
    """Database connection and operations manager."""

    def __init__(
        self,
        db_path: Optional[str] = None,
        max_retries: Optional[int] = None,
        retry_base_delay: Optional[float] = None,
    ):
        """Initialize database connection.

        Args:
            db_path: Path to SQLite database file. If None, uses
                     LIBRARYDESK_DB_PATH env var or default location.
            max_retries: Attempts per unit of work before giving up
            retry_base_delay: First backoff delay in seconds (doubles per retry)
        """
        config = get_config()
        if db_path is None:
            db_path = str(config.db_path)

        self.db_path = Path(db_path)
        self.max_retries = max_retries or config.max_retries
        self.retry_base_delay = (
            retry_base_delay if retry_base_delay is not None else config.retry_base_delay
        )
        self._is_memory = str(db_path) == ":memory:"

        if not self._is_memory:
            self._ensure_directory()

        # For in-memory databases, use StaticPool to reuse the same connection
        # This ensures all sessions share the same in-memory database
        if self._is_memory:
            self.engine = create_engine(
                "sqlite:///:memory:",
                echo=False,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            self.engine = create_engine(
                f"sqlite:///{self.db_path}",
                echo=False,
                connect_args={"check_same_thread": False, "timeout": 15},
            )
        self.SessionLocal = sessionmaker(bind=self.engine, autocommit=False, autoflush=False)

    def _ensure_directory(self) -> None:
        """Ensure the database directory exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def create_tables(self) -> None:
        """Create all database tables."""
        # Import models to register them with Base
        from ..catalog.models import Book  # noqa: F401
        from ..membership.models import User  # noqa: F401
        from ..lending.models import Transaction  # noqa: F401
        from ..reviews.models import Review  # noqa: F401
        from ..notifications.models import Notification  # noqa: F401

        Base.metadata.create_all(self.engine)

    def drop_tables(self) -> None:
        """Drop all database tables. Use with caution!"""
        Base.metadata.drop_all(self.engine)

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """Get a database session context manager."""
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def atomic(
        self,
        work: Callable[[Session], T],
        retries: Optional[int] = None,
    ) -> T:
        """Run ``work`` in one transaction, retrying on write conflicts.

        ``work`` receives a fresh session per attempt and must re-read
        everything it validates, because a retry means another writer
        changed the rows in between.

        Args:
            work: Callable performing the reads, checks and writes
            retries: Max attempts (uses self.max_retries if not provided)

        Returns:
            Result of work

        Raises:
            ConcurrencyError: If every attempt conflicted
        """
        max_attempts = retries or self.max_retries
        backoff = self.retry_base_delay

        for attempt in range(max_attempts):
            try:
                with self.get_session() as session:
                    return work(session)
            except (StaleDataError, IntegrityError, OperationalError) as e:
                if not is_write_conflict(e):
                    raise
                if attempt == max_attempts - 1:
                    raise ConcurrencyError(
                        "Operation conflicted with concurrent updates; try again"
                    ) from e
                logger.warning(
                    "Write conflict (%s), retrying in %.2fs (attempt %d/%d)",
                    type(e).__name__,
                    backoff,
                    attempt + 1,
                    max_attempts,
                )
                time.sleep(backoff)
                backoff *= 2

        # max_attempts < 1
        raise ConcurrencyError("No attempts configured for unit of work")


# Global database instance
_db: Optional[Database] = None


def get_db(db_path: Optional[str] = None) -> Database:
    """Get or create the global database instance."""
    global _db
    if _db is None:
        _db = Database(db_path)
        _db.create_tables()
    return _db


def reset_db() -> None:
    """Reset the global database instance. Used for testing."""
    global _db
    _db = None
