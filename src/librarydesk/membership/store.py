"""Membership store for library accounts and their loan counters."""

import logging
import random
import time
from datetime import timedelta
from typing import Optional

from sqlalchemy import column, func, select, table
from sqlalchemy.orm import Session

from ..db.models import to_iso, utcnow
from ..db.sqlite import Database, get_db
from ..errors import InUseError, LimitExceededError, NotFoundError
from .models import User
from .schemas import UserCreate, UserUpdate, loan_limit

logger = logging.getLogger(__name__)

MEMBERSHIP_TERM_DAYS = 365

# Fields an update may set to None
_CLEARABLE_FIELDS = {"phone", "membership_expiry"}

# Lending owns the Transaction model; only the columns the tier check reads
_transactions = table("transactions", column("user_id"), column("status"))


def generate_card_number() -> str:
    """Library card number: ``LC`` + 6 timestamp digits + 3 random digits."""
    timestamp = str(int(time.time() * 1000))
    return f"LC{timestamp[-6:]}{random.randint(0, 999):03d}"


class MembershipStore:
    """Persistence for users.

    Like CatalogStore, every method can run inside a caller's session. The
    loan limit is exposed here but enforced by the lending manager.
    """

    def __init__(self, db: Optional[Database] = None):
        """Initialize membership store.

        Args:
            db: Database instance
        """
        self.db = db or get_db()

    # -------------------------------------------------------------------------
    # User CRUD
    # -------------------------------------------------------------------------

    def create_user(self, data: UserCreate) -> User:
        """Create a new member.

        Args:
            data: User creation data

        Returns:
            Created user
        """
        with self.db.get_session() as session:
            existing = session.execute(
                select(User).where(User.email == data.email)
            ).scalar_one_or_none()
            if existing:
                raise ValueError(f"A user with email {data.email} already exists")

            expiry = data.membership_expiry or utcnow() + timedelta(days=MEMBERSHIP_TERM_DAYS)

            user = User(
                email=data.email,
                first_name=data.first_name,
                last_name=data.last_name,
                phone=data.phone,
                role=data.role.value,
                membership_type=data.membership_type.value,
                membership_expiry=to_iso(expiry),
                library_card_number=data.library_card_number or generate_card_number(),
                is_active=True,
                total_books_borrowed=0,
                total_books_read=0,
            )
            user.set_borrowed_books([])

            session.add(user)
            session.commit()
            session.refresh(user)
            session.expunge(user)

            logger.info("Registered user %s (%s)", user.id, user.membership_type)
            return user

    def get_user(
        self,
        user_id: str,
        session: Optional[Session] = None,
        include_inactive: bool = False,
    ) -> Optional[User]:
        """Get a user by ID.

        Args:
            user_id: User ID
            session: Session to use (default: own session)
            include_inactive: Also return deactivated users

        Returns:
            User or None
        """

        def _get(s: Session) -> Optional[User]:
            user = s.get(User, user_id)
            if user and not user.is_active and not include_inactive:
                return None
            return user

        if session:
            return _get(session)
        with self.db.get_session() as s:
            user = _get(s)
            if user:
                s.expunge(user)
            return user

    def require_user(self, session: Session, user_id: str) -> User:
        """Get an active user inside ``session`` or raise NotFoundError."""
        user = self.get_user(user_id, session=session)
        if not user:
            raise NotFoundError(f"User {user_id} not found")
        return user

    def get_user_by_email(self, email: str) -> Optional[User]:
        """Get a user by email (case-insensitive)."""
        with self.db.get_session() as session:
            stmt = select(User).where(User.email == email.strip().lower())
            user = session.execute(stmt).scalar_one_or_none()
            if user:
                session.expunge(user)
            return user

    def get_user_by_card(self, card_number: str) -> Optional[User]:
        """Get a user by library card number."""
        with self.db.get_session() as session:
            stmt = select(User).where(User.library_card_number == card_number)
            user = session.execute(stmt).scalar_one_or_none()
            if user:
                session.expunge(user)
            return user

    def list_users(
        self,
        role: Optional[str] = None,
        membership_type: Optional[str] = None,
        active_only: bool = True,
    ) -> list[User]:
        """List users with optional filters.

        Args:
            role: Filter by role
            membership_type: Filter by membership tier
            active_only: Skip deactivated accounts

        Returns:
            List of users ordered by last name
        """
        with self.db.get_session() as session:
            stmt = select(User)

            if role:
                stmt = stmt.where(User.role == role)
            if membership_type:
                stmt = stmt.where(User.membership_type == membership_type)
            if active_only:
                stmt = stmt.where(User.is_active == True)  # noqa: E712

            stmt = stmt.order_by(User.last_name, User.first_name)

            users = session.execute(stmt).scalars().all()
            for user in users:
                session.expunge(user)
            return list(users)

    def update_user(self, user_id: str, data: UserUpdate) -> User:
        """Update a user.

        Args:
            user_id: User ID
            data: Update data

        Returns:
            Updated user

        Raises:
            LimitExceededError: New tier allows fewer loans than the user holds
        """

        def _update(s: Session) -> User:
            user = self.require_user(s, user_id)

            update_data = data.model_dump(exclude_unset=True)
            new_type = update_data.get("membership_type")
            if new_type is not None:
                limit = loan_limit(new_type)
                active = self._active_count(s, user_id)
                if active > limit:
                    raise LimitExceededError(
                        f"Cannot change to {getattr(new_type, 'value', new_type)} membership: "
                        f"{active} active loans exceed its limit of {limit}"
                    )

            for field, value in update_data.items():
                if value is None and field not in _CLEARABLE_FIELDS:
                    continue
                if field == "membership_expiry" and value:
                    user.membership_expiry = to_iso(value)
                elif value is not None and hasattr(value, "value"):
                    setattr(user, field, value.value)
                else:
                    setattr(user, field, value)

            s.commit()
            s.refresh(user)
            s.expunge(user)
            return user

        return self.db.atomic(_update)

    def deactivate_user(self, user_id: str) -> bool:
        """Deactivate a user account.

        Args:
            user_id: User ID

        Returns:
            True if deactivated
        """

        def _deactivate(s: Session) -> bool:
            user = self.get_user(user_id, session=s)
            if not user:
                return False
            if user.get_borrowed_books():
                raise InUseError("Cannot deactivate user with active transactions")

            user.is_active = False
            s.commit()
            logger.info("Deactivated user %s", user_id)
            return True

        return self.db.atomic(_deactivate)

    # -------------------------------------------------------------------------
    # Counters used by the lending manager
    # -------------------------------------------------------------------------

    def loan_limit(self, membership_type: str) -> int:
        """Maximum concurrent loans for a membership tier."""
        return loan_limit(membership_type)

    def _active_count(self, session: Session, user_id: str) -> int:
        stmt = (
            select(func.count())
            .select_from(_transactions)
            .where(_transactions.c.user_id == user_id, _transactions.c.status == "active")
        )
        return session.execute(stmt).scalar_one()

    def save(self, user: User, session: Session) -> None:
        """Stage a user for writing in ``session``."""
        session.add(user)

    def add_borrowed_book(self, user: User, book_id: str) -> None:
        """Record a new loan on the user."""
        books = user.get_borrowed_books()
        books.append(book_id)
        user.set_borrowed_books(books)
        user.total_books_borrowed = (user.total_books_borrowed or 0) + 1

    def remove_borrowed_book(self, user: User, book_id: str, finished: bool = True) -> None:
        """Drop a loan from the user's list.

        Args:
            user: User holding the loan
            book_id: Book being given back
            finished: Count the book as read
        """
        books = user.get_borrowed_books()
        if book_id in books:
            books.remove(book_id)
        user.set_borrowed_books(books)
        if finished:
            user.total_books_read = (user.total_books_read or 0) + 1
