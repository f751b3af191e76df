"""SQLAlchemy models for the book catalog.

Tables:
- books: Catalog titles with copy counts and rating aggregates
"""

from typing import Optional

from sqlalchemy import Boolean, Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ..db.models import Base, generate_uuid, now_iso
from .schemas import DIGITAL_FORMATS, AvailabilityStatus, BookCondition, BookFormat


class Book(Base):
    """Book model - one catalog title and its physical copies."""

    __tablename__ = "books"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)

    # Identity
    isbn: Mapped[str] = mapped_column(String(13), nullable=False, unique=True, index=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    author: Mapped[str] = mapped_column(String(100), nullable=False, index=True)

    # Publication
    publisher: Mapped[Optional[str]] = mapped_column(String(200))
    publication_year: Mapped[Optional[int]] = mapped_column(Integer)
    genre: Mapped[Optional[str]] = mapped_column(String(20), index=True)
    format: Mapped[str] = mapped_column(String(20), default=BookFormat.PAPERBACK.value)
    language: Mapped[str] = mapped_column(String(30), default="English")
    description: Mapped[Optional[str]] = mapped_column(Text)

    # Copies. available_copies is set by CatalogStore.create_book, not defaulted here.
    total_copies: Mapped[int] = mapped_column(Integer, nullable=False)
    available_copies: Mapped[int] = mapped_column(Integer, nullable=False)
    condition: Mapped[str] = mapped_column(String(20), default=BookCondition.NEW.value)

    # Flags
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, index=True)

    # Ratings (maintained by ReviewManager)
    average_rating: Mapped[float] = mapped_column(Float, default=0.0)
    total_ratings: Mapped[int] = mapped_column(Integer, default=0)
    total_reviews: Mapped[int] = mapped_column(Integer, default=0)

    # Popularity
    total_borrows: Mapped[int] = mapped_column(Integer, default=0)
    total_views: Mapped[int] = mapped_column(Integer, default=0)
    popularity_score: Mapped[float] = mapped_column(Float, default=0.0)
    trending_score: Mapped[float] = mapped_column(Float, default=0.0)
    last_borrowed_at: Mapped[Optional[str]] = mapped_column(String(25))

    # Optimistic lock
    version_id: Mapped[int] = mapped_column(Integer, nullable=False)

    # Timestamps
    created_at: Mapped[str] = mapped_column(String(25), default=now_iso)
    updated_at: Mapped[str] = mapped_column(String(25), default=now_iso, onupdate=now_iso)

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Book(id={self.id}, title='{self.title}', available={self.available_copies}/{self.total_copies})>"

    @property
    def is_digital(self) -> bool:
        """Check if the title circulates as a digital loan."""
        return self.format in DIGITAL_FORMATS

    @property
    def is_available(self) -> bool:
        """Check if at least one copy is on the shelf."""
        return self.available_copies > 0 and not self.is_deleted

    @property
    def availability_status(self) -> str:
        """Shelf status derived from copy counts."""
        if self.is_deleted or not self.is_active:
            return AvailabilityStatus.UNAVAILABLE.value
        if self.available_copies == 0:
            return AvailabilityStatus.OUT_OF_STOCK.value
        if self.available_copies < self.total_copies * 0.2:
            return AvailabilityStatus.LOW_STOCK.value
        return AvailabilityStatus.AVAILABLE.value

    @property
    def on_loan(self) -> int:
        """Copies currently out with borrowers."""
        return self.total_copies - self.available_copies

    @property
    def can_be_borrowed(self) -> bool:
        """Check if a new loan may be issued for this title."""
        return (
            self.is_active
            and self.is_available
            and self.condition != BookCondition.DAMAGED.value
        )
