"""SQLAlchemy models for circulation.

Tables:
- transactions: Loans, reservations and their fines
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..catalog.models import Book
from ..db.models import Base, from_iso, generate_uuid, now_iso, utcnow
from ..membership.models import User
from . import policy

OPEN_PAIR_WHERE = "status IN ('pending', 'active')"


class Transaction(Base):
    """Transaction model - one loan or reservation of a book by a user."""

    __tablename__ = "transactions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)

    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=False, index=True
    )
    book_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("books.id"), nullable=False, index=True
    )

    # Stored status is never "overdue"; see effective_status
    type: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), default="active", index=True)

    # Dates
    borrow_date: Mapped[Optional[str]] = mapped_column(String(25))
    due_date: Mapped[Optional[str]] = mapped_column(String(25), index=True)
    return_date: Mapped[Optional[str]] = mapped_column(String(25))
    actual_return_date: Mapped[Optional[str]] = mapped_column(String(25))

    # Renewals
    renewal_count: Mapped[int] = mapped_column(Integer, default=0)
    max_renewals: Mapped[int] = mapped_column(Integer, default=policy.MAX_RENEWALS)
    last_renewal_date: Mapped[Optional[str]] = mapped_column(String(25))

    # Reservations
    reservation_date: Mapped[Optional[str]] = mapped_column(String(25))
    reservation_expiry: Mapped[Optional[str]] = mapped_column(String(25))

    # Fines
    fine_amount: Mapped[float] = mapped_column(Float, default=0.0)
    fine_reason: Mapped[Optional[str]] = mapped_column(String(30))
    fine_status: Mapped[str] = mapped_column(String(20), default="none")
    fine_paid_date: Mapped[Optional[str]] = mapped_column(String(25))

    # Condition
    book_condition_at_borrow: Mapped[Optional[str]] = mapped_column(String(20))
    book_condition_at_return: Mapped[Optional[str]] = mapped_column(String(20))
    condition_notes: Mapped[Optional[str]] = mapped_column(Text)

    # Digital
    is_digital: Mapped[bool] = mapped_column(Boolean, default=False)
    access_url: Mapped[Optional[str]] = mapped_column(String(500))

    # Staff
    processed_by: Mapped[Optional[str]] = mapped_column(String(36))
    notes: Mapped[Optional[str]] = mapped_column(Text)

    # Optimistic lock
    version_id: Mapped[int] = mapped_column(Integer, nullable=False)

    # Timestamps
    created_at: Mapped[str] = mapped_column(String(25), default=now_iso)
    updated_at: Mapped[str] = mapped_column(String(25), default=now_iso, onupdate=now_iso)

    # Relationships
    book: Mapped["Book"] = relationship("Book")
    user: Mapped["User"] = relationship("User")

    __table_args__ = (
        Index("ix_transactions_user_status", "user_id", "status"),
        Index("ix_transactions_book_status", "book_id", "status"),
        Index("ix_transactions_due_status", "due_date", "status"),
        # At most one open (pending or active) transaction per user and book
        Index(
            "uq_transactions_open_pair",
            "user_id",
            "book_id",
            unique=True,
            sqlite_where=text(OPEN_PAIR_WHERE),
            postgresql_where=text(OPEN_PAIR_WHERE),
        ),
    )

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Transaction(id={self.id}, type={self.type}, status={self.status})>"

    def _due(self) -> Optional[datetime]:
        return from_iso(self.due_date)

    @property
    def is_overdue(self) -> bool:
        """Check if the loan is active and past due."""
        return policy.is_overdue(self.status, self._due(), utcnow())

    @property
    def effective_status(self) -> str:
        """Stored status, or ``overdue`` for a late active loan."""
        return policy.effective_status(self.status, self._due(), utcnow())

    @property
    def days_until_due(self) -> Optional[int]:
        """Days until due (negative if overdue)."""
        due = self._due()
        if due is None:
            return None
        return (due - utcnow()).days

    @property
    def days_overdue(self) -> int:
        """Days overdue (0 if not overdue)."""
        if self.status != "active":
            return 0
        return policy.days_overdue(self._due(), utcnow())

    @property
    def accrued_fine(self) -> float:
        """Fine the loan would carry if returned now."""
        return policy.calculate_fine(self.days_overdue)

    @property
    def can_renew(self) -> bool:
        """Check if the loan may be renewed now."""
        return policy.can_renew(
            self.type, self.status, self.renewal_count or 0, self._due(), utcnow(),
            self.max_renewals or policy.MAX_RENEWALS,
        )
