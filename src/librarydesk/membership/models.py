"""SQLAlchemy models for library members.

Tables:
- users: Members, staff and their loan counters
"""

import json
from typing import Optional

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ..db.models import Base, from_iso, generate_uuid, now_iso, utcnow
from .schemas import MembershipType, Role
from .schemas import loan_limit as tier_loan_limit


class User(Base):
    """User model - a library account."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)

    # Identity
    email: Mapped[str] = mapped_column(String(200), nullable=False, unique=True, index=True)
    first_name: Mapped[str] = mapped_column(String(50), nullable=False)
    last_name: Mapped[str] = mapped_column(String(50), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(20))

    # Role and membership
    role: Mapped[str] = mapped_column(String(20), default=Role.MEMBER.value, index=True)
    membership_type: Mapped[str] = mapped_column(
        String(20), default=MembershipType.BASIC.value
    )
    membership_expiry: Mapped[Optional[str]] = mapped_column(String(25))
    library_card_number: Mapped[str] = mapped_column(String(20), unique=True, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    # Loans
    current_borrowed_books: Mapped[Optional[str]] = mapped_column(Text)  # JSON array of book ids
    total_books_borrowed: Mapped[int] = mapped_column(Integer, default=0)
    total_books_read: Mapped[int] = mapped_column(Integer, default=0)

    # Optimistic lock
    version_id: Mapped[int] = mapped_column(Integer, nullable=False)

    # Timestamps
    created_at: Mapped[str] = mapped_column(String(25), default=now_iso)
    updated_at: Mapped[str] = mapped_column(String(25), default=now_iso, onupdate=now_iso)

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', membership={self.membership_type})>"

    @property
    def full_name(self) -> str:
        """First and last name."""
        return f"{self.first_name} {self.last_name}"

    @property
    def loan_limit(self) -> int:
        """Maximum simultaneous loans for this member's tier."""
        return tier_loan_limit(self.membership_type)

    @property
    def is_membership_active(self) -> bool:
        """Check if the membership has not expired."""
        expiry = from_iso(self.membership_expiry)
        return expiry is None or expiry > utcnow()

    # Helper methods for JSON fields
    def get_borrowed_books(self) -> list[str]:
        """Get current_borrowed_books as list."""
        if self.current_borrowed_books:
            return json.loads(self.current_borrowed_books)
        return []

    def set_borrowed_books(self, book_ids: list[str]) -> None:
        """Set current_borrowed_books from list."""
        self.current_borrowed_books = json.dumps(book_ids) if book_ids else None
