"""Book review module.

Provides functionality for:
- Reviews tied to completed loans
- Moderation status and soft deletion
- Book rating aggregates recomputed on every review write
"""

from .aggregator import RatingAggregate, aggregate_ratings, rating_distribution
from .manager import ReviewManager
from .models import Review
from .schemas import (
    BookRatingSummary,
    ReviewCreate,
    ReviewResponse,
    ReviewStatus,
    ReviewUpdate,
)

__all__ = [
    "ReviewManager",
    "Review",
    "ReviewCreate",
    "ReviewUpdate",
    "ReviewResponse",
    "ReviewStatus",
    "BookRatingSummary",
    "RatingAggregate",
    "aggregate_ratings",
    "rating_distribution",
]
