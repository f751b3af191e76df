"""Catalog store for book records and copy counts."""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from ..db.models import from_iso, utcnow
from ..db.sqlite import Database, get_db
from ..errors import InUseError, NotFoundError, UnavailableError
from .models import Book
from .schemas import BookCreate, BookUpdate
from .scoring import days_since, popularity_score, trending_score

logger = logging.getLogger(__name__)

# Fields an update may set to None
_CLEARABLE_FIELDS = {"publisher", "publication_year", "genre", "description"}


class CatalogStore:
    """Persistence for books.

    Methods accept an optional session so that callers such as the lending
    manager can compose several reads and writes into one transaction. The
    store does not know about loans; keeping ``available_copies`` consistent
    with open transactions is the caller's job.
    """

    def __init__(self, db: Optional[Database] = None):
        """Initialize catalog store.

        Args:
            db: Database instance
        """
        self.db = db or get_db()

    # -------------------------------------------------------------------------
    # Book CRUD
    # -------------------------------------------------------------------------

    def create_book(self, data: BookCreate, session: Optional[Session] = None) -> Book:
        """Create a new book with all copies on the shelf.

        Args:
            data: Book creation data
            session: Session to use (default: own transaction)

        Returns:
            Created book
        """

        def _create(s: Session) -> Book:
            existing = s.execute(
                select(Book).where(Book.isbn == data.isbn)
            ).scalar_one_or_none()
            if existing:
                raise ValueError(f"A book with ISBN {data.isbn} already exists")

            book = Book(
                isbn=data.isbn,
                title=data.title,
                author=data.author,
                publisher=data.publisher,
                publication_year=data.publication_year,
                genre=data.genre.value if data.genre else None,
                format=data.format.value,
                language=data.language,
                description=data.description,
                condition=data.condition.value,
                total_copies=data.total_copies,
                available_copies=data.total_copies,
                is_active=True,
                is_deleted=False,
                average_rating=0.0,
                total_ratings=0,
                total_reviews=0,
                total_borrows=0,
                total_views=0,
                popularity_score=0.0,
                trending_score=0.0,
            )
            s.add(book)
            s.flush()
            logger.info("Added book %s (%s), %d copies", book.id, book.title, book.total_copies)
            return book

        if session:
            return _create(session)
        with self.db.get_session() as s:
            book = _create(s)
            s.commit()
            s.refresh(book)
            s.expunge(book)
            return book

    def get_book(
        self,
        book_id: str,
        session: Optional[Session] = None,
        include_deleted: bool = False,
    ) -> Optional[Book]:
        """Get a book by ID.

        Args:
            book_id: Book ID
            session: Session to use (default: own session)
            include_deleted: Also return soft-deleted books

        Returns:
            Book or None
        """

        def _get(s: Session) -> Optional[Book]:
            book = s.get(Book, book_id)
            if book and book.is_deleted and not include_deleted:
                return None
            return book

        if session:
            return _get(session)
        with self.db.get_session() as s:
            book = _get(s)
            if book:
                s.expunge(book)
            return book

    def require_book(self, session: Session, book_id: str) -> Book:
        """Get a live book inside ``session`` or raise NotFoundError."""
        book = self.get_book(book_id, session=session)
        if not book:
            raise NotFoundError(f"Book {book_id} not found")
        return book

    def get_book_by_isbn(self, isbn: str, session: Optional[Session] = None) -> Optional[Book]:
        """Get a book by ISBN."""

        def _get(s: Session) -> Optional[Book]:
            normalized = isbn.replace("-", "").replace(" ", "").upper()
            stmt = select(Book).where(Book.isbn == normalized, Book.is_deleted == False)  # noqa: E712
            return s.execute(stmt).scalar_one_or_none()

        if session:
            return _get(session)
        with self.db.get_session() as s:
            book = _get(s)
            if book:
                s.expunge(book)
            return book

    def list_books(
        self,
        query: Optional[str] = None,
        genre: Optional[str] = None,
        available_only: bool = False,
        include_inactive: bool = False,
        limit: Optional[int] = None,
    ) -> list[Book]:
        """List books with optional filters.

        Args:
            query: Case-insensitive match on title or author
            genre: Filter by genre
            available_only: Only books with a copy on the shelf
            include_inactive: Include books withdrawn from lending
            limit: Maximum number of books

        Returns:
            List of books ordered by title
        """
        with self.db.get_session() as session:
            stmt = select(Book).where(Book.is_deleted == False)  # noqa: E712

            if not include_inactive:
                stmt = stmt.where(Book.is_active == True)  # noqa: E712
            if query:
                pattern = f"%{query.lower()}%"
                stmt = stmt.where(
                    or_(
                        func.lower(Book.title).like(pattern),
                        func.lower(Book.author).like(pattern),
                    )
                )
            if genre:
                stmt = stmt.where(Book.genre == genre)
            if available_only:
                stmt = stmt.where(Book.available_copies > 0)

            stmt = stmt.order_by(Book.title)
            if limit:
                stmt = stmt.limit(limit)

            books = session.execute(stmt).scalars().all()
            for book in books:
                session.expunge(book)
            return list(books)

    def update_book(self, book_id: str, data: BookUpdate) -> Book:
        """Update a book.

        A change to ``total_copies`` moves ``available_copies`` by the same
        amount so the number of copies on loan is unchanged.

        Args:
            book_id: Book ID
            data: Update data

        Returns:
            Updated book
        """

        def _update(s: Session) -> Book:
            book = self.require_book(s, book_id)
            update_data = data.model_dump(exclude_unset=True)

            new_total = update_data.pop("total_copies", None)
            if new_total is not None and new_total != book.total_copies:
                if new_total < book.on_loan:
                    raise InUseError(
                        f"Cannot reduce to {new_total} copies, {book.on_loan} are on loan"
                    )
                delta = new_total - book.total_copies
                book.total_copies = new_total
                book.available_copies += delta

            for field, value in update_data.items():
                if value is None and field not in _CLEARABLE_FIELDS:
                    continue
                if value is not None and hasattr(value, "value"):
                    value = value.value
                setattr(book, field, value)

            s.commit()
            s.refresh(book)
            s.expunge(book)
            return book

        return self.db.atomic(_update)

    def delete_book(self, book_id: str) -> bool:
        """Soft-delete a book.

        Args:
            book_id: Book ID

        Returns:
            True if deleted
        """

        def _delete(s: Session) -> bool:
            book = self.get_book(book_id, session=s)
            if not book:
                return False
            if book.on_loan > 0:
                raise InUseError("Cannot delete book with active transactions")

            book.is_deleted = True
            book.is_active = False
            s.commit()
            logger.info("Deleted book %s", book_id)
            return True

        return self.db.atomic(_delete)

    def record_view(self, book_id: str) -> Book:
        """Count a catalog view and refresh the ranking scores."""

        def _view(s: Session) -> Book:
            book = self.require_book(s, book_id)
            book.total_views += 1
            self.refresh_scores(book)
            s.commit()
            s.refresh(book)
            s.expunge(book)
            return book

        return self.db.atomic(_view)

    # -------------------------------------------------------------------------
    # Counters used by the lending manager
    # -------------------------------------------------------------------------

    def save(self, book: Book, session: Session) -> None:
        """Stage a book for writing in ``session``."""
        session.add(book)

    def adjust_available(self, book: Book, delta: int) -> None:
        """Move ``available_copies`` by ``delta`` within ``[0, total_copies]``."""
        new_value = book.available_copies + delta
        if new_value < 0:
            raise UnavailableError(f"No copies of '{book.title}' are available")
        if new_value > book.total_copies:
            raise ValueError(
                f"Book {book.id} would have {new_value} available of {book.total_copies} copies"
            )
        book.available_copies = new_value

    def withdraw_copy(self, book: Book) -> None:
        """Remove one on-loan copy from the collection (lost or damaged)."""
        if book.on_loan < 1:
            raise ValueError(f"Book {book.id} has no copy on loan to withdraw")
        book.total_copies -= 1

    def refresh_scores(self, book: Book, now: Optional[datetime] = None) -> None:
        """Recompute popularity and trending scores on ``book``."""
        now = now or utcnow()
        book.popularity_score = popularity_score(
            book.total_borrows or 0, book.total_views or 0, book.average_rating or 0.0
        )
        book.trending_score = trending_score(
            book.total_borrows or 0,
            book.average_rating or 0.0,
            days_since(from_iso(book.last_borrowed_at), now),
        )

    # -------------------------------------------------------------------------
    # Rankings
    # -------------------------------------------------------------------------

    def _ranked(self, order, limit: int) -> list[Book]:
        with self.db.get_session() as session:
            stmt = (
                select(Book)
                .where(
                    Book.is_active == True,  # noqa: E712
                    Book.is_deleted == False,  # noqa: E712
                    Book.available_copies > 0,
                )
                .order_by(*order)
                .limit(limit)
            )
            books = session.execute(stmt).scalars().all()
            for book in books:
                session.expunge(book)
            return list(books)

    def popular(self, limit: int = 10) -> list[Book]:
        """Available books by popularity, then rating."""
        return self._ranked((Book.popularity_score.desc(), Book.average_rating.desc()), limit)

    def trending(self, limit: int = 10) -> list[Book]:
        """Available books by trending score, then popularity."""
        return self._ranked((Book.trending_score.desc(), Book.popularity_score.desc()), limit)
