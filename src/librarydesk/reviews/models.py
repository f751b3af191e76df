"""SQLAlchemy models for book reviews.

Tables:
- reviews: One review per completed loan
"""

from typing import Optional

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..catalog.models import Book
from ..db.models import Base, generate_uuid, now_iso
from .schemas import ReviewStatus


class Review(Base):
    """Review model - a member's rating of a book they returned."""

    __tablename__ = "reviews"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)

    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=False, index=True
    )
    book_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("books.id"), nullable=False, index=True
    )
    # One review per completed loan
    transaction_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("transactions.id"), nullable=False, unique=True
    )

    # Rating (1-5 stars)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)

    # Detailed ratings (optional, 1-5)
    plot_rating: Mapped[Optional[int]] = mapped_column(Integer)
    writing_rating: Mapped[Optional[int]] = mapped_column(Integer)
    characters_rating: Mapped[Optional[int]] = mapped_column(Integer)
    pacing_rating: Mapped[Optional[int]] = mapped_column(Integer)
    originality_rating: Mapped[Optional[int]] = mapped_column(Integer)

    would_recommend: Mapped[bool] = mapped_column(Boolean, default=True)
    tags: Mapped[Optional[str]] = mapped_column(Text)  # Comma-separated

    # Moderation
    status: Mapped[str] = mapped_column(String(20), default=ReviewStatus.PUBLISHED.value)
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    moderation_notes: Mapped[Optional[str]] = mapped_column(Text)
    is_edited: Mapped[bool] = mapped_column(Boolean, default=False)
    edited_at: Mapped[Optional[str]] = mapped_column(String(25))

    # Timestamps
    created_at: Mapped[str] = mapped_column(String(25), default=now_iso)
    updated_at: Mapped[str] = mapped_column(String(25), default=now_iso, onupdate=now_iso)

    # Relationships
    book: Mapped["Book"] = relationship("Book")

    __table_args__ = (
        Index("ix_reviews_book_status", "book_id", "status"),
        Index("ix_reviews_user_status", "user_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<Review(id={self.id}, book_id={self.book_id}, rating={self.rating})>"

    @property
    def tag_list(self) -> list[str]:
        """Get tags as a list."""
        if not self.tags:
            return []
        return [t.strip() for t in self.tags.split(",") if t.strip()]

    @property
    def is_published(self) -> bool:
        """Check if the review counts toward the book's rating."""
        return self.status == ReviewStatus.PUBLISHED.value

    @property
    def average_detailed_rating(self) -> float:
        """Mean of the detailed ratings, or the overall rating if none were given."""
        ratings = [r for r in [
            self.plot_rating,
            self.writing_rating,
            self.characters_rating,
            self.pacing_rating,
            self.originality_rating,
        ] if r is not None]
        if not ratings:
            return float(self.rating)
        return round(sum(ratings) / len(ratings), 1)
