"""Pytest configuration and shared fixtures.

This module provides fixtures for testing librarydesk: in-memory and
file databases, a controllable clock, the stores and managers, and sample
books and members.
"""

from datetime import datetime, timedelta
from pathlib import Path
from typing import Generator

import pytest

from librarydesk.catalog import BookCreate, BookFormat, CatalogStore, Genre
from librarydesk.config import reset_config
from librarydesk.db import Database, reset_db, utcnow
from librarydesk.lending import LendingManager
from librarydesk.membership import MembershipStore, MembershipType, UserCreate


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def reset_globals() -> Generator[None, None, None]:
    """Reset the global config and database between tests."""
    reset_db()
    reset_config()
    yield
    reset_db()
    reset_config()


@pytest.fixture
def db() -> Database:
    """Create an in-memory database for testing."""
    database = Database(":memory:")
    database.create_tables()
    return database


@pytest.fixture
def file_db(tmp_path: Path) -> Database:
    """Create a database backed by a temporary file (needed for threads)."""
    database = Database(str(tmp_path / "library.db"), max_retries=10, retry_base_delay=0.01)
    database.create_tables()
    return database


@pytest.fixture
def clock() -> FrozenClock:
    """Clock starting at the current second."""
    return FrozenClock(utcnow().replace(microsecond=0))


# ============================================================================
# Store and Manager Fixtures
# ============================================================================


@pytest.fixture
def catalog(db: Database) -> CatalogStore:
    """Create a CatalogStore with test database."""
    return CatalogStore(db)


@pytest.fixture
def members(db: Database) -> MembershipStore:
    """Create a MembershipStore with test database."""
    return MembershipStore(db)


@pytest.fixture
def lending(db: Database, catalog: CatalogStore, members: MembershipStore, clock: FrozenClock):
    """Create a LendingManager driven by the test clock."""
    return LendingManager(db, catalog=catalog, members=members, clock=clock)


# ============================================================================
# Sample Data Fixtures
# ============================================================================


@pytest.fixture
def sample_book_data() -> BookCreate:
    """Create sample book data for testing."""
    return BookCreate(
        title="Dune",
        author="Frank Herbert",
        isbn="978-0-441-17271-9",
        genre=Genre.SCI_FI,
        total_copies=2,
    )


@pytest.fixture
def book(catalog: CatalogStore, sample_book_data: BookCreate):
    """A physical book with two copies."""
    return catalog.create_book(sample_book_data)


@pytest.fixture
def single_copy_book(catalog: CatalogStore):
    """A physical book with a single copy."""
    return catalog.create_book(
        BookCreate(
            title="The Left Hand of Darkness",
            author="Ursula K. Le Guin",
            isbn="9780441478125",
            genre=Genre.SCI_FI,
            total_copies=1,
        )
    )


@pytest.fixture
def ebook(catalog: CatalogStore):
    """A digital title."""
    return catalog.create_book(
        BookCreate(
            title="Neuromancer",
            author="William Gibson",
            isbn="9780441569595",
            format=BookFormat.EBOOK,
            total_copies=3,
        )
    )


@pytest.fixture
def shelf(catalog: CatalogStore) -> list:
    """Five single-copy books across two genres."""
    books = []
    for i in range(5):
        books.append(
            catalog.create_book(
                BookCreate(
                    title=f"Shelf Book {i + 1}",
                    author=f"Author {i + 1}",
                    isbn=f"97800000000{i:02d}",
                    genre=Genre.MYSTERY if i % 2 == 0 else Genre.HISTORY,
                    total_copies=1,
                )
            )
        )
    return books


@pytest.fixture
def member(members: MembershipStore):
    """A basic member (loan limit 3)."""
    return members.create_user(
        UserCreate(first_name="Ada", last_name="Lovelace", email="ada@example.com")
    )


@pytest.fixture
def other_member(members: MembershipStore):
    """A premium member (loan limit 10)."""
    return members.create_user(
        UserCreate(
            first_name="Alan",
            last_name="Turing",
            email="alan@example.com",
            membership_type=MembershipType.PREMIUM,
        )
    )
