"""Pydantic schemas for book reviews."""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class ReviewStatus(str, Enum):
    """Moderation state of a review. Only PUBLISHED counts toward ratings."""

    DRAFT = "draft"
    PUBLISHED = "published"
    HIDDEN = "hidden"
    REPORTED = "reported"
    REMOVED = "removed"


class ReviewBase(BaseModel):
    """Base review fields."""

    rating: int = Field(..., ge=1, le=5)
    title: str = Field(..., min_length=1, max_length=100)
    content: str = Field(..., min_length=1, max_length=2000)

    # Detailed ratings
    plot_rating: Optional[int] = Field(None, ge=1, le=5)
    writing_rating: Optional[int] = Field(None, ge=1, le=5)
    characters_rating: Optional[int] = Field(None, ge=1, le=5)
    pacing_rating: Optional[int] = Field(None, ge=1, le=5)
    originality_rating: Optional[int] = Field(None, ge=1, le=5)

    would_recommend: bool = True
    tags: Optional[list[str]] = None

    @field_validator("title", "content")
    @classmethod
    def strip_text(cls, v: str) -> str:
        """Trim surrounding whitespace."""
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class ReviewCreate(ReviewBase):
    """Schema for creating a review of a completed loan."""

    book_id: UUID
    transaction_id: UUID
    status: ReviewStatus = ReviewStatus.PUBLISHED


class ReviewUpdate(BaseModel):
    """Schema for updating a review."""

    rating: Optional[int] = Field(None, ge=1, le=5)
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    content: Optional[str] = Field(None, min_length=1, max_length=2000)

    plot_rating: Optional[int] = Field(None, ge=1, le=5)
    writing_rating: Optional[int] = Field(None, ge=1, le=5)
    characters_rating: Optional[int] = Field(None, ge=1, le=5)
    pacing_rating: Optional[int] = Field(None, ge=1, le=5)
    originality_rating: Optional[int] = Field(None, ge=1, le=5)

    would_recommend: Optional[bool] = None
    tags: Optional[list[str]] = None


class ReviewResponse(BaseModel):
    """Schema for review responses."""

    id: UUID
    user_id: UUID
    book_id: UUID
    transaction_id: UUID
    rating: int
    title: str
    content: str
    status: ReviewStatus
    would_recommend: bool
    is_verified: bool
    is_edited: bool
    tag_list: list[str]
    average_detailed_rating: float
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class BookRatingSummary(BaseModel):
    """Rating breakdown for one book."""

    book_id: UUID
    average_rating: float
    total_ratings: int
    total_reviews: int
    distribution: dict[int, int]
    recommend_percentage: float
