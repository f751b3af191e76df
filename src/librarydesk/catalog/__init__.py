"""Book catalog module.

Provides functionality for:
- Book records with total/available copy counts
- Soft deletion and lending eligibility
- Popularity and trending scores
"""

from .models import Book
from .schemas import (
    AvailabilityStatus,
    BookCondition,
    BookCreate,
    BookFormat,
    BookResponse,
    BookUpdate,
    Genre,
)
from .scoring import popularity_score, trending_score
from .store import CatalogStore

__all__ = [
    "CatalogStore",
    "Book",
    "BookCreate",
    "BookUpdate",
    "BookResponse",
    "BookCondition",
    "BookFormat",
    "Genre",
    "AvailabilityStatus",
    "popularity_score",
    "trending_score",
]
