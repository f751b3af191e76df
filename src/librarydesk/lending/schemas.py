"""Pydantic schemas for circulation transactions."""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class TransactionType(str, Enum):
    """Kind of circulation event a transaction records."""

    BORROW = "borrow"
    RETURN = "return"
    RENEW = "renew"
    RESERVE = "reserve"
    CANCEL_RESERVATION = "cancel_reservation"
    LATE_RETURN = "late_return"
    LOST_BOOK = "lost_book"
    DAMAGED_BOOK = "damaged_book"


class TransactionStatus(str, Enum):
    """Status of a transaction. OVERDUE is derived, never stored."""

    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"
    LOST = "lost"
    DAMAGED = "damaged"


class FineStatus(str, Enum):
    """Settlement state of a fine."""

    NONE = "none"
    PENDING = "pending"
    PAID = "paid"
    WAIVED = "waived"
    DISPUTED = "disputed"


class FineReason(str, Enum):
    """Why a fine was charged."""

    LATE_RETURN = "late_return"
    DAMAGED_BOOK = "damaged_book"
    LOST_BOOK = "lost_book"
    OVERDUE_RENEWAL = "overdue_renewal"
    RESERVATION_NO_SHOW = "reservation_no_show"


class FineUpdate(BaseModel):
    """Schema for administrative fine changes."""

    amount: Optional[float] = Field(None, ge=0)
    reason: Optional[FineReason] = None
    status: Optional[FineStatus] = None


class TransactionResponse(BaseModel):
    """Schema for transaction responses."""

    id: UUID
    user_id: UUID
    book_id: UUID
    type: TransactionType
    status: TransactionStatus
    effective_status: TransactionStatus
    borrow_date: Optional[datetime]
    due_date: Optional[datetime]
    return_date: Optional[datetime]
    renewal_count: int
    reservation_expiry: Optional[datetime]
    fine_amount: float
    fine_status: FineStatus
    fine_reason: Optional[FineReason]
    is_digital: bool
    is_overdue: bool
    days_overdue: int
    days_until_due: Optional[int]

    model_config = {"from_attributes": True}


class TransactionSummary(BaseModel):
    """Summary of a transaction for listing."""

    id: UUID
    book_title: str
    user_name: str
    type: TransactionType
    status: TransactionStatus
    due_date: Optional[datetime]
    days_overdue: int
    accrued_fine: float


class LendingStats(BaseModel):
    """Overall circulation statistics."""

    active_loans: int
    overdue_loans: int
    pending_reservations: int
    completed_loans: int
    lost_or_damaged: int
    fines_outstanding: float
    fines_collected: float


class OverdueReport(BaseModel):
    """Report of overdue loans."""

    loans: list[TransactionSummary]
    total_overdue: int
    oldest_overdue_days: int
    total_accrued_fines: float


class GenreCount(BaseModel):
    """Completed loans in one genre."""

    genre: str
    count: int


class UserLendingStats(BaseModel):
    """Borrowing statistics for one member."""

    user_id: UUID
    membership_type: str
    loan_limit: int
    active_loans: int
    overdue_loans: int
    remaining_loans: int
    total_books_borrowed: int
    total_books_read: int
    average_loan_days: float
    outstanding_fines: float
    favorite_genres: list[GenreCount]


class AvailabilityDiscrepancy(BaseModel):
    """A book whose copy counters disagree with its open loans."""

    book_id: UUID
    title: str
    total_copies: int
    available_copies: int
    active_loans: int
