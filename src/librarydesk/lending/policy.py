"""Circulation rules as pure functions.

Loan periods, fines, renewals and reservation holds live here with their
exact constants so they can be unit-tested without a database. The
``overdue`` status is never stored: it is derived from ``active`` plus a
past due date each time it is asked for.
"""

import math
from datetime import datetime, timedelta
from typing import Optional

FINE_PER_DAY = 0.50
MAX_FINE = 25.00
LOST_BOOK_FINE = MAX_FINE

MAX_RENEWALS = 3
DEFAULT_RENEWAL_DAYS = 14
MAX_RENEWAL_DAYS = 30

PHYSICAL_LOAN_DAYS = 21
DIGITAL_LOAN_DAYS = 14

RESERVATION_HOLD_DAYS = 7

RENEWABLE_TYPES = ("borrow", "renew")
OPEN_STATUSES = ("pending", "active")


def loan_period(is_digital: bool) -> timedelta:
    """Length of a new loan: 14 days digital, 21 days physical."""
    return timedelta(days=DIGITAL_LOAN_DAYS if is_digital else PHYSICAL_LOAN_DAYS)


def due_date_for(borrowed_at: datetime, is_digital: bool = False) -> datetime:
    """Default due date of a loan started at ``borrowed_at``."""
    return borrowed_at + loan_period(is_digital)


def reservation_expiry_for(reserved_at: datetime) -> datetime:
    """End of the hold placed at ``reserved_at``."""
    return reserved_at + timedelta(days=RESERVATION_HOLD_DAYS)


def is_overdue(status: str, due_date: Optional[datetime], now: datetime) -> bool:
    """Check if an active loan is past its due date."""
    return status == "active" and due_date is not None and now > due_date


def effective_status(status: str, due_date: Optional[datetime], now: datetime) -> str:
    """Status as presented to readers: ``overdue`` for late active loans."""
    if is_overdue(status, due_date, now):
        return "overdue"
    return status


def days_overdue(due_date: Optional[datetime], at: datetime) -> int:
    """Whole days late at ``at``, counting any part day as a full day."""
    if due_date is None or at <= due_date:
        return 0
    return math.ceil((at - due_date).total_seconds() / 86400)


def calculate_fine(days_late: int) -> float:
    """Late fine: $0.50 per day, capped at $25.00.

    >>> calculate_fine(10)
    5.0
    >>> calculate_fine(60)
    25.0
    """
    if days_late <= 0:
        return 0.0
    return round(min(days_late * FINE_PER_DAY, MAX_FINE), 2)


def fine_status_for(amount: float) -> str:
    """Initial fine status for a computed amount."""
    return "pending" if amount > 0 else "none"


def renewal_blocker(
    transaction_type: str,
    status: str,
    renewal_count: int,
    due_date: Optional[datetime],
    now: datetime,
    max_renewals: int = MAX_RENEWALS,
) -> Optional[str]:
    """Reason a loan cannot be renewed, or None if it can."""
    if transaction_type not in RENEWABLE_TYPES:
        return f"A {transaction_type} transaction cannot be renewed"
    if status != "active":
        return f"Only active loans can be renewed (status: {status})"
    if renewal_count >= max_renewals:
        return f"Maximum {max_renewals} renewals reached"
    if due_date is None or due_date <= now:
        return "Overdue loans cannot be renewed"
    return None


def can_renew(
    transaction_type: str,
    status: str,
    renewal_count: int,
    due_date: Optional[datetime],
    now: datetime,
    max_renewals: int = MAX_RENEWALS,
) -> bool:
    """Check if a loan may be renewed."""
    return (
        renewal_blocker(transaction_type, status, renewal_count, due_date, now, max_renewals)
        is None
    )
