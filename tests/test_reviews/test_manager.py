"""Tests for ReviewManager."""

import pytest
from pydantic import ValidationError

from librarydesk.errors import NotFoundError, ReviewNotAllowedError
from librarydesk.reviews import (
    ReviewCreate,
    ReviewManager,
    ReviewResponse,
    ReviewStatus,
    ReviewUpdate,
)


@pytest.fixture
def reviews(db, catalog) -> ReviewManager:
    """Create a ReviewManager with test database."""
    return ReviewManager(db, catalog=catalog)


@pytest.fixture
def returned_loan(lending, member, book):
    """A completed loan of the sample book by the sample member."""
    txn = lending.borrow(member.id, book.id)
    return lending.return_book(txn.id)


@pytest.fixture
def other_returned_loan(lending, other_member, book):
    """A completed loan of the sample book by the second member."""
    txn = lending.borrow(other_member.id, book.id)
    return lending.return_book(txn.id)


def review_data(txn, rating=5, **kwargs) -> ReviewCreate:
    """Review payload for a completed loan."""
    fields = {
        "book_id": txn.book_id,
        "transaction_id": txn.id,
        "rating": rating,
        "title": "Worth it",
        "content": "Spice, sand and politics.",
    }
    fields.update(kwargs)
    return ReviewCreate(**fields)


class TestReviewSchemas:
    """Tests for review validation."""

    def test_rating_range(self, returned_loan):
        """Test ratings must be 1 to 5."""
        with pytest.raises(ValidationError):
            review_data(returned_loan, rating=6)
        with pytest.raises(ValidationError):
            review_data(returned_loan, rating=0)

    def test_blank_content(self, returned_loan):
        """Test whitespace-only text is rejected."""
        with pytest.raises(ValidationError):
            review_data(returned_loan, content="   ")


class TestCreateReview:
    """Tests for creating reviews."""

    def test_create_review(self, reviews, catalog, member, book, returned_loan):
        """Test a review of a returned loan updates the book."""
        review = reviews.create_review(
            member.id, review_data(returned_loan, rating=4, tags=["classic", "desert"])
        )

        assert review.rating == 4
        assert review.status == "published"
        assert review.is_verified is True
        assert review.tag_list == ["classic", "desert"]

        updated = catalog.get_book(book.id)
        assert updated.average_rating == 4.0
        assert updated.total_ratings == 1
        assert updated.total_reviews == 1

    def test_response_schema(self, reviews, member, returned_loan):
        """Test reviews validate into the response schema."""
        review = reviews.create_review(
            member.id, review_data(returned_loan, plot_rating=5, writing_rating=4)
        )
        response = ReviewResponse.model_validate(review)

        assert response.status == ReviewStatus.PUBLISHED
        assert response.average_detailed_rating == 4.5

    def test_active_loan_cannot_be_reviewed(self, reviews, lending, member, book):
        """Test a loan must be returned before it is reviewed."""
        txn = lending.borrow(member.id, book.id)

        with pytest.raises(ReviewNotAllowedError):
            reviews.create_review(member.id, review_data(txn))

    def test_other_users_loan(self, reviews, other_member, returned_loan):
        """Test a member cannot review someone else's loan."""
        with pytest.raises(ReviewNotAllowedError):
            reviews.create_review(other_member.id, review_data(returned_loan))

    def test_loan_for_other_book(self, reviews, member, returned_loan, single_copy_book):
        """Test the loan must be for the reviewed book."""
        with pytest.raises(ReviewNotAllowedError):
            reviews.create_review(
                member.id, review_data(returned_loan, book_id=single_copy_book.id)
            )

    def test_one_review_per_book(self, reviews, lending, member, book, returned_loan):
        """Test a member reviews a book once even after borrowing it again."""
        reviews.create_review(member.id, review_data(returned_loan))
        again = lending.return_book(lending.borrow(member.id, book.id).id)

        with pytest.raises(ReviewNotAllowedError, match="already reviewed this book"):
            reviews.create_review(member.id, review_data(again))

    def test_removed_review_frees_the_book(self, reviews, lending, member, book, returned_loan):
        """Test a member can review again from a new loan once the old review is removed."""
        first = reviews.create_review(member.id, review_data(returned_loan))
        reviews.delete_review(first.id)

        with pytest.raises(ReviewNotAllowedError, match="already been reviewed"):
            reviews.create_review(member.id, review_data(returned_loan))

        again = lending.return_book(lending.borrow(member.id, book.id).id)
        review = reviews.create_review(member.id, review_data(again, rating=2))
        assert review.rating == 2

    def test_missing_book(self, reviews, member, returned_loan, catalog):
        """Test reviewing a deleted book."""
        catalog.delete_book(returned_loan.book_id)

        with pytest.raises(NotFoundError):
            reviews.create_review(member.id, review_data(returned_loan))


class TestRatingAggregate:
    """Tests for the book's rating fields staying current."""

    def test_mean_of_published(
        self, reviews, catalog, member, other_member, book, returned_loan, other_returned_loan
    ):
        """Test the average covers every published review."""
        reviews.create_review(member.id, review_data(returned_loan, rating=5))
        reviews.create_review(other_member.id, review_data(other_returned_loan, rating=2))

        assert catalog.get_book(book.id).average_rating == 3.5

    def test_unpublished_not_counted(
        self, reviews, catalog, member, other_member, book, returned_loan, other_returned_loan
    ):
        """Test drafts and hidden reviews are ignored."""
        reviews.create_review(member.id, review_data(returned_loan, rating=5))
        second = reviews.create_review(
            other_member.id,
            review_data(other_returned_loan, rating=1, status=ReviewStatus.DRAFT),
        )
        assert catalog.get_book(book.id).total_ratings == 1

        reviews.set_status(second.id, ReviewStatus.PUBLISHED)
        assert catalog.get_book(book.id).average_rating == 3.0

        reviews.set_status(second.id, ReviewStatus.HIDDEN, notes="Spoilers")
        updated = catalog.get_book(book.id)
        assert updated.average_rating == 5.0
        assert updated.total_ratings == 1

    def test_update_rating(self, reviews, catalog, member, book, returned_loan):
        """Test editing a rating recomputes the average."""
        review = reviews.create_review(member.id, review_data(returned_loan, rating=5))

        updated = reviews.update_review(review.id, ReviewUpdate(rating=3, content="On reflection"))

        assert updated.is_edited is True
        assert updated.edited_at is not None
        assert catalog.get_book(book.id).average_rating == 3.0

    def test_update_rating_only_is_not_edit(self, reviews, member, returned_loan):
        """Test changing just the rating does not mark the text edited."""
        review = reviews.create_review(member.id, review_data(returned_loan))

        updated = reviews.update_review(review.id, ReviewUpdate(rating=4))
        assert updated.is_edited is False

    def test_delete_resets_aggregate(self, reviews, catalog, member, book, returned_loan):
        """Test removing the only review resets the book to zero."""
        review = reviews.create_review(member.id, review_data(returned_loan, rating=4))

        assert reviews.delete_review(review.id) is True

        updated = catalog.get_book(book.id)
        assert updated.average_rating == 0.0
        assert updated.total_ratings == 0
        assert updated.total_reviews == 0
        assert reviews.delete_review(review.id) is False


class TestReviewQueries:
    """Tests for listing and summaries."""

    def test_list_reviews(
        self, reviews, member, other_member, book, returned_loan, other_returned_loan
    ):
        """Test filtering and ordering reviews."""
        reviews.create_review(member.id, review_data(returned_loan, rating=2))
        reviews.create_review(other_member.id, review_data(other_returned_loan, rating=5))

        by_rating = reviews.list_reviews(book_id=book.id, order_by="rating")
        assert [r.rating for r in by_rating] == [5, 2]
        assert len(reviews.list_reviews(min_rating=3)) == 1
        assert [r.user_id for r in reviews.list_reviews(user_id=member.id)] == [member.id]

    def test_update_by_other_user(self, reviews, member, other_member, returned_loan):
        """Test only the author may edit a review."""
        review = reviews.create_review(member.id, review_data(returned_loan))

        with pytest.raises(ReviewNotAllowedError):
            reviews.update_review(review.id, ReviewUpdate(rating=1), user_id=other_member.id)

    def test_update_removed_review(self, reviews, member, returned_loan):
        """Test a removed review cannot be edited."""
        review = reviews.create_review(member.id, review_data(returned_loan))
        reviews.delete_review(review.id)

        with pytest.raises(NotFoundError):
            reviews.update_review(review.id, ReviewUpdate(rating=1))

    def test_book_summary(
        self, reviews, member, other_member, book, returned_loan, other_returned_loan
    ):
        """Test the rating breakdown for a book."""
        reviews.create_review(member.id, review_data(returned_loan, rating=4))
        reviews.create_review(
            other_member.id,
            review_data(other_returned_loan, rating=2, would_recommend=False),
        )

        summary = reviews.get_book_summary(book.id)

        assert summary.average_rating == 3.0
        assert summary.total_reviews == 2
        assert summary.distribution[4] == 1
        assert summary.distribution[2] == 1
        assert summary.recommend_percentage == 50.0
