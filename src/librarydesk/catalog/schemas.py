"""Pydantic schemas for the book catalog."""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class BookFormat(str, Enum):
    """Physical or digital format of a title."""

    HARDCOVER = "hardcover"
    PAPERBACK = "paperback"
    EBOOK = "ebook"
    AUDIOBOOK = "audiobook"
    MAGAZINE = "magazine"
    JOURNAL = "journal"


DIGITAL_FORMATS = frozenset({BookFormat.EBOOK.value, BookFormat.AUDIOBOOK.value})


class BookCondition(str, Enum):
    """Condition of a book or a returned copy."""

    NEW = "new"
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    DAMAGED = "damaged"


class Genre(str, Enum):
    """Catalog genres."""

    FICTION = "fiction"
    NON_FICTION = "non-fiction"
    SCIENCE = "science"
    HISTORY = "history"
    BIOGRAPHY = "biography"
    MYSTERY = "mystery"
    ROMANCE = "romance"
    FANTASY = "fantasy"
    SCI_FI = "sci-fi"
    THRILLER = "thriller"
    SELF_HELP = "self-help"
    BUSINESS = "business"
    TECHNOLOGY = "technology"
    ART = "art"
    PHILOSOPHY = "philosophy"
    POETRY = "poetry"
    DRAMA = "drama"
    COMEDY = "comedy"
    EDUCATION = "education"
    REFERENCE = "reference"
    CHILDREN = "children"
    YOUNG_ADULT = "young-adult"


class AvailabilityStatus(str, Enum):
    """Shelf availability derived from copy counts."""

    AVAILABLE = "available"
    LOW_STOCK = "low_stock"
    OUT_OF_STOCK = "out_of_stock"
    UNAVAILABLE = "unavailable"


def _normalize_isbn(v: str) -> str:
    digits = v.replace("-", "").replace(" ", "").upper()
    if digits.startswith("ISBN"):
        digits = digits[4:].lstrip(":")
    if len(digits) not in (10, 13) or not digits[:-1].isdigit():
        raise ValueError("ISBN must have 10 or 13 digits")
    if not (digits[-1].isdigit() or (len(digits) == 10 and digits[-1] == "X")):
        raise ValueError("Invalid ISBN check character")
    return digits


class BookBase(BaseModel):
    """Base book fields."""

    title: str = Field(..., min_length=1, max_length=200)
    author: str = Field(..., min_length=1, max_length=100)
    isbn: str
    publisher: Optional[str] = Field(None, max_length=200)
    publication_year: Optional[int] = Field(None, ge=1000, le=datetime.now().year + 1)
    genre: Optional[Genre] = None
    format: BookFormat = BookFormat.PAPERBACK
    language: str = "English"
    description: Optional[str] = Field(None, max_length=2000)
    condition: BookCondition = BookCondition.NEW

    @field_validator("isbn")
    @classmethod
    def validate_isbn(cls, v):
        """Strip separators and check the ISBN length."""
        return _normalize_isbn(v)


class BookCreate(BookBase):
    """Schema for creating a book."""

    total_copies: int = Field(1, ge=1)


class BookUpdate(BaseModel):
    """Schema for updating a book."""

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    author: Optional[str] = Field(None, min_length=1, max_length=100)
    publisher: Optional[str] = Field(None, max_length=200)
    publication_year: Optional[int] = Field(None, ge=1000, le=datetime.now().year + 1)
    genre: Optional[Genre] = None
    format: Optional[BookFormat] = None
    language: Optional[str] = None
    description: Optional[str] = Field(None, max_length=2000)
    condition: Optional[BookCondition] = None
    total_copies: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None


class BookResponse(BaseModel):
    """Schema for book responses."""

    id: UUID
    isbn: str
    title: str
    author: str
    publisher: Optional[str]
    publication_year: Optional[int]
    genre: Optional[Genre]
    format: BookFormat
    condition: BookCondition
    total_copies: int
    available_copies: int
    availability_status: AvailabilityStatus
    average_rating: float
    total_ratings: int
    total_reviews: int
    total_borrows: int
    popularity_score: float
    trending_score: float
    is_active: bool

    model_config = {"from_attributes": True}
