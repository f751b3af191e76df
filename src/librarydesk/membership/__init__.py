"""Library membership module.

Provides functionality for:
- Member accounts, roles and membership tiers
- Loan limits per tier
- Current-loan lists and borrowing counters
"""

from .models import User
from .schemas import (
    MEMBERSHIP_LOAN_LIMITS,
    MembershipType,
    Role,
    UserCreate,
    UserResponse,
    UserUpdate,
    loan_limit,
)
from .store import MembershipStore

__all__ = [
    "MembershipStore",
    "User",
    "UserCreate",
    "UserUpdate",
    "UserResponse",
    "Role",
    "MembershipType",
    "MEMBERSHIP_LOAN_LIMITS",
    "loan_limit",
]
