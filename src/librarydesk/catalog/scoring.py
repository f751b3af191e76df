"""Popularity and trending formulas for catalog ranking.

Both are pure functions of a book's counters so they can be recomputed
whenever those counters change and tested without a database.
"""

from datetime import datetime
from typing import Optional

BORROW_WEIGHT = 2.0
VIEW_WEIGHT = 0.1
RATING_WEIGHT = 10.0
RECENT_BONUS = 5.0

TRENDING_DECAY_DAYS = 30.0
TRENDING_RATING_WEIGHT = 2.0
NEVER_BORROWED_DAYS = 365.0


def popularity_score(total_borrows: int, total_views: int, average_rating: float) -> float:
    """Weighted sum of borrows, views and rating.

    Args:
        total_borrows: Lifetime loans of the title
        total_views: Lifetime catalog views
        average_rating: Mean published rating (0-5)

    Returns:
        Popularity score
    """
    score = (
        total_borrows * BORROW_WEIGHT
        + total_views * VIEW_WEIGHT
        + average_rating * RATING_WEIGHT
    )
    if total_borrows > 0:
        score += RECENT_BONUS
    return round(score, 2)


def days_since(moment: Optional[datetime], now: datetime) -> float:
    """Fractional days between ``moment`` and ``now`` (365 if never)."""
    if moment is None:
        return NEVER_BORROWED_DAYS
    return max(0.0, (now - moment).total_seconds() / 86400)


def trending_score(
    total_borrows: int,
    average_rating: float,
    days_since_last_borrow: float = NEVER_BORROWED_DAYS,
) -> float:
    """Borrow count decayed by time since the last loan, plus a rating term.

    Args:
        total_borrows: Lifetime loans of the title
        average_rating: Mean published rating (0-5)
        days_since_last_borrow: Days since the most recent loan

    Returns:
        Trending score
    """
    recent = total_borrows * (1 / (1 + days_since_last_borrow / TRENDING_DECAY_DAYS))
    return round(recent + average_rating * TRENDING_RATING_WEIGHT, 2)
