"""Tests for the popularity and trending formulas."""

from datetime import datetime, timedelta, timezone

from librarydesk.catalog.scoring import days_since, popularity_score, trending_score


class TestPopularityScore:
    """Tests for popularity_score."""

    def test_unborrowed_unviewed(self):
        """Test a fresh book scores zero."""
        assert popularity_score(0, 0, 0.0) == 0.0

    def test_weighted_sum(self):
        """Test borrows, views and rating are weighted and a borrow bonus added."""
        # 3*2 + 10*0.1 + 4*10 + 5
        assert popularity_score(3, 10, 4.0) == 52.0

    def test_views_only_no_bonus(self):
        """Test the bonus needs at least one borrow."""
        assert popularity_score(0, 25, 0.0) == 2.5


class TestTrendingScore:
    """Tests for trending_score."""

    def test_borrowed_today(self):
        """Test no decay for a loan made just now."""
        assert trending_score(10, 0.0, 0.0) == 10.0

    def test_decay_after_thirty_days(self):
        """Test the borrow term halves after thirty days."""
        assert trending_score(10, 4.0, 30.0) == 13.0

    def test_never_borrowed_default(self):
        """Test the default of 365 days since the last borrow."""
        assert trending_score(10, 0.0) == 0.76


class TestDaysSince:
    """Tests for days_since."""

    def test_never(self):
        """Test a missing timestamp counts as a year."""
        assert days_since(None, datetime.now(timezone.utc)) == 365.0

    def test_fractional_days(self):
        """Test the gap is measured in fractional days."""
        now = datetime(2026, 1, 10, tzinfo=timezone.utc)
        assert days_since(now - timedelta(hours=36), now) == 1.5

    def test_future_is_zero(self):
        """Test a timestamp after now clamps to zero."""
        now = datetime(2026, 1, 10, tzinfo=timezone.utc)
        assert days_since(now + timedelta(days=1), now) == 0.0
