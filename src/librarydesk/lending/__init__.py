"""Circulation lifecycle module.

Provides functionality for:
- Borrowing, returning and renewing loans
- Reservations and their expiry
- Late fines, lost and damaged copies
- Overdue and due-soon queries
"""

from .manager import LendingManager
from .models import Transaction
from .policy import calculate_fine, days_overdue
from .schemas import (
    FineReason,
    FineStatus,
    FineUpdate,
    LendingStats,
    OverdueReport,
    TransactionResponse,
    TransactionStatus,
    TransactionSummary,
    TransactionType,
    UserLendingStats,
)

__all__ = [
    "LendingManager",
    "Transaction",
    "TransactionResponse",
    "TransactionSummary",
    "TransactionStatus",
    "TransactionType",
    "FineStatus",
    "FineReason",
    "FineUpdate",
    "LendingStats",
    "OverdueReport",
    "UserLendingStats",
    "calculate_fine",
    "days_overdue",
]
