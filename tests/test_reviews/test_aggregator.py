"""Tests for rating aggregation."""

from librarydesk.reviews.aggregator import (
    EMPTY,
    aggregate_ratings,
    rating_distribution,
    star_display,
)


class TestAggregateRatings:
    """Tests for aggregate_ratings."""

    def test_empty(self):
        """Test no ratings resets every field."""
        assert aggregate_ratings([]) == EMPTY
        assert EMPTY.average_rating == 0.0

    def test_mean_rounded_to_one_decimal(self):
        """Test the mean is rounded to one decimal place."""
        aggregate = aggregate_ratings([5, 4, 4])

        assert aggregate.average_rating == 4.3
        assert aggregate.total_ratings == 3
        assert aggregate.total_reviews == 3

    def test_halves_round_up(self):
        """Test a mean ending in 5 rounds up rather than to even."""
        assert aggregate_ratings([4, 4, 5, 4]).average_rating == 4.3
        assert aggregate_ratings([1, 2, 2, 2]).average_rating == 1.8
        assert aggregate_ratings([3, 3, 3, 4]).average_rating == 3.3

    def test_accepts_generators(self):
        """Test any iterable of ratings works."""
        assert aggregate_ratings(r for r in (2, 3)).average_rating == 2.5


class TestDistribution:
    """Tests for rating_distribution and star_display."""

    def test_distribution_has_every_star(self):
        """Test all five buckets are present."""
        assert rating_distribution([5, 5, 1]) == {1: 1, 2: 0, 3: 0, 4: 0, 5: 2}

    def test_star_display(self):
        """Test ratings render as five stars."""
        assert star_display(4.3) == "★★★★☆"
        assert star_display(0) == "☆☆☆☆☆"
        assert star_display(2.5) == "★★★☆☆"
