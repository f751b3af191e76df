"""Pydantic schemas for library members."""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class Role(str, Enum):
    """Account role."""

    ADMIN = "admin"
    LIBRARIAN = "librarian"
    MEMBER = "member"
    STUDENT = "student"


class MembershipType(str, Enum):
    """Membership tier, which sets the loan limit."""

    BASIC = "basic"
    PREMIUM = "premium"
    STUDENT = "student"
    FACULTY = "faculty"


# Maximum simultaneous active loans per tier
MEMBERSHIP_LOAN_LIMITS = {
    MembershipType.BASIC.value: 3,
    MembershipType.PREMIUM.value: 10,
    MembershipType.STUDENT.value: 5,
    MembershipType.FACULTY.value: 8,
}


def loan_limit(membership_type: str) -> int:
    """Maximum simultaneous loans for a membership tier."""
    if isinstance(membership_type, MembershipType):
        membership_type = membership_type.value
    try:
        return MEMBERSHIP_LOAN_LIMITS[membership_type]
    except KeyError:
        raise ValueError(f"Unknown membership type: {membership_type}") from None


class UserBase(BaseModel):
    """Base member fields."""

    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    email: str = Field(..., max_length=200)
    phone: Optional[str] = Field(None, pattern=r"^\+?[1-9]\d{0,15}$")
    role: Role = Role.MEMBER
    membership_type: MembershipType = MembershipType.BASIC

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        """Lower-case the address and check its shape."""
        v = v.strip().lower()
        local, _, domain = v.partition("@")
        if not local or "." not in domain or domain.startswith(".") or domain.endswith("."):
            raise ValueError("Please enter a valid email")
        return v


class UserCreate(UserBase):
    """Schema for creating a member."""

    library_card_number: Optional[str] = Field(None, max_length=20)
    membership_expiry: Optional[datetime] = None


class UserUpdate(BaseModel):
    """Schema for updating a member."""

    first_name: Optional[str] = Field(None, min_length=1, max_length=50)
    last_name: Optional[str] = Field(None, min_length=1, max_length=50)
    phone: Optional[str] = Field(None, pattern=r"^\+?[1-9]\d{0,15}$")
    role: Optional[Role] = None
    membership_type: Optional[MembershipType] = None
    membership_expiry: Optional[datetime] = None


class UserResponse(BaseModel):
    """Schema for member responses."""

    id: UUID
    first_name: str
    last_name: str
    full_name: str
    email: str
    role: Role
    membership_type: MembershipType
    library_card_number: str
    loan_limit: int
    total_books_borrowed: int
    total_books_read: int
    is_active: bool

    model_config = {"from_attributes": True}
