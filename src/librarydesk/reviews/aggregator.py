"""Book rating aggregation.

A book's rating fields are recomputed from scratch over its published
reviews on every review write, never incremented.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable


@dataclass(frozen=True)
class RatingAggregate:
    """Rating fields stored on a book."""

    average_rating: float
    total_ratings: int
    total_reviews: int


EMPTY = RatingAggregate(average_rating=0.0, total_ratings=0, total_reviews=0)


def aggregate_ratings(ratings: Iterable[int]) -> RatingAggregate:
    """Average of published ratings rounded to one decimal.

    Args:
        ratings: Ratings of the book's published reviews

    Returns:
        RatingAggregate (all zero when there are no ratings)
    """
    values = list(ratings)
    if not values:
        return EMPTY
    # Halves round up: a mean of 4.25 is stored as 4.3
    mean = Decimal(sum(values)) / len(values)
    average = mean.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    return RatingAggregate(
        average_rating=float(average),
        total_ratings=len(values),
        total_reviews=len(values),
    )


def rating_distribution(ratings: Iterable[int]) -> dict[int, int]:
    """Count of ratings per star value, 1 through 5."""
    counts = {star: 0 for star in range(1, 6)}
    for rating in ratings:
        if rating in counts:
            counts[rating] += 1
    return counts


def star_display(rating: float) -> str:
    """Render a rating as filled and empty stars."""
    filled = int(Decimal(str(rating)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return "★" * filled + "☆" * (5 - filled)
