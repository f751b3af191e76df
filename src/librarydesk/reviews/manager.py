"""Review manager for book review operations."""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..catalog.store import CatalogStore
from ..db.models import to_iso, utcnow
from ..db.sqlite import Database, get_db
from ..errors import NotFoundError, ReviewNotAllowedError
from ..lending.models import Transaction
from .aggregator import aggregate_ratings, rating_distribution
from .models import Review
from .schemas import BookRatingSummary, ReviewCreate, ReviewStatus, ReviewUpdate

logger = logging.getLogger(__name__)


class ReviewManager:
    """Manages reviews and keeps each book's rating aggregate current."""

    def __init__(self, db: Optional[Database] = None, catalog: Optional[CatalogStore] = None):
        """Initialize review manager.

        Args:
            db: Database instance
            catalog: Catalog store sharing the same database
        """
        self.db = db or get_db()
        self.catalog = catalog or CatalogStore(self.db)

    def _recompute_rating(self, s: Session, book_id: str) -> None:
        """Rewrite the book's rating fields from its published reviews."""
        s.flush()
        ratings = s.execute(
            select(Review.rating).where(
                Review.book_id == book_id,
                Review.status == ReviewStatus.PUBLISHED.value,
            )
        ).scalars().all()
        aggregate = aggregate_ratings(ratings)

        book = self.catalog.get_book(book_id, session=s, include_deleted=True)
        if not book:
            return
        book.average_rating = aggregate.average_rating
        book.total_ratings = aggregate.total_ratings
        book.total_reviews = aggregate.total_reviews
        self.catalog.refresh_scores(book)
        logger.debug(
            "Book %s rating now %.1f over %d review(s)",
            book_id, aggregate.average_rating, aggregate.total_ratings,
        )

    def _require_review(self, s: Session, review_id: str) -> Review:
        review = s.get(Review, review_id)
        if not review or review.status == ReviewStatus.REMOVED.value:
            raise NotFoundError(f"Review {review_id} not found")
        return review

    # -------------------------------------------------------------------------
    # Review CRUD
    # -------------------------------------------------------------------------

    def create_review(self, user_id: str, data: ReviewCreate) -> Review:
        """Create a review backed by one of the user's completed loans.

        Args:
            user_id: Reviewing user
            data: Review creation data

        Returns:
            Created review

        Raises:
            NotFoundError: Book missing
            ReviewNotAllowedError: No matching completed loan, or already reviewed
        """
        book_id = str(data.book_id)
        transaction_id = str(data.transaction_id)

        def _create(s: Session) -> Review:
            self.catalog.require_book(s, book_id)

            txn = s.get(Transaction, transaction_id)
            if (
                not txn
                or txn.user_id != user_id
                or txn.book_id != book_id
                or txn.status != "completed"
            ):
                raise ReviewNotAllowedError(
                    "You can only review books you have borrowed and returned"
                )

            existing = s.execute(
                select(Review).where(
                    Review.user_id == user_id,
                    Review.book_id == book_id,
                    Review.status != ReviewStatus.REMOVED.value,
                )
            ).scalars().first()
            if existing:
                raise ReviewNotAllowedError("You have already reviewed this book")

            used = s.execute(
                select(Review.id).where(Review.transaction_id == transaction_id)
            ).first()
            if used:
                raise ReviewNotAllowedError("This loan has already been reviewed")

            review = Review(
                user_id=user_id,
                book_id=book_id,
                transaction_id=transaction_id,
                rating=data.rating,
                title=data.title,
                content=data.content,
                plot_rating=data.plot_rating,
                writing_rating=data.writing_rating,
                characters_rating=data.characters_rating,
                pacing_rating=data.pacing_rating,
                originality_rating=data.originality_rating,
                would_recommend=data.would_recommend,
                tags=",".join(data.tags) if data.tags else None,
                status=data.status.value,
                is_verified=True,
                is_edited=False,
            )
            s.add(review)
            self._recompute_rating(s, book_id)

            s.commit()
            s.refresh(review)
            s.expunge(review)
            logger.info("User %s reviewed book %s (%d stars)", user_id, book_id, review.rating)
            return review

        return self.db.atomic(_create)

    def get_review(self, review_id: str) -> Optional[Review]:
        """Get a review by ID.

        Args:
            review_id: Review ID

        Returns:
            Review or None
        """
        with self.db.get_session() as session:
            review = session.get(Review, review_id)
            if review:
                session.expunge(review)
            return review

    def list_reviews(
        self,
        book_id: Optional[str] = None,
        user_id: Optional[str] = None,
        status: Optional[ReviewStatus] = ReviewStatus.PUBLISHED,
        min_rating: Optional[int] = None,
        order_by: str = "newest",
        limit: Optional[int] = None,
    ) -> list[Review]:
        """List reviews with optional filters.

        Args:
            book_id: Filter by book
            user_id: Filter by author
            status: Filter by status (None for all)
            min_rating: Minimum rating filter
            order_by: newest, oldest or rating
            limit: Maximum number of reviews

        Returns:
            List of reviews
        """
        with self.db.get_session() as session:
            stmt = select(Review)

            if book_id:
                stmt = stmt.where(Review.book_id == book_id)
            if user_id:
                stmt = stmt.where(Review.user_id == user_id)
            if status:
                stmt = stmt.where(Review.status == status.value)
            if min_rating is not None:
                stmt = stmt.where(Review.rating >= min_rating)

            order = {
                "newest": (Review.created_at.desc(),),
                "oldest": (Review.created_at.asc(),),
                "rating": (Review.rating.desc(), Review.created_at.desc()),
            }.get(order_by, (Review.created_at.desc(),))
            stmt = stmt.order_by(*order)
            if limit:
                stmt = stmt.limit(limit)

            reviews = session.execute(stmt).scalars().all()
            for review in reviews:
                session.expunge(review)
            return list(reviews)

    def update_review(
        self,
        review_id: str,
        data: ReviewUpdate,
        user_id: Optional[str] = None,
    ) -> Review:
        """Update a review.

        Args:
            review_id: Review ID
            data: Update data
            user_id: Editing user; must be the author when given

        Returns:
            Updated review
        """

        def _update(s: Session) -> Review:
            review = self._require_review(s, review_id)
            if user_id and review.user_id != user_id:
                raise ReviewNotAllowedError("Not authorized to update this review")

            update_data = data.model_dump(exclude_unset=True)
            for field, value in update_data.items():
                if field == "tags":
                    review.tags = ",".join(value) if value else None
                elif value is not None:
                    setattr(review, field, value)

            if "content" in update_data or "title" in update_data:
                review.is_edited = True
                review.edited_at = to_iso(utcnow())

            self._recompute_rating(s, review.book_id)
            s.commit()
            s.refresh(review)
            s.expunge(review)
            return review

        return self.db.atomic(_update)

    def delete_review(self, review_id: str, user_id: Optional[str] = None) -> bool:
        """Remove a review (soft delete).

        Args:
            review_id: Review ID
            user_id: Deleting user; must be the author when given

        Returns:
            True if removed
        """

        def _delete(s: Session) -> bool:
            review = s.get(Review, review_id)
            if not review or review.status == ReviewStatus.REMOVED.value:
                return False
            if user_id and review.user_id != user_id:
                raise ReviewNotAllowedError("Not authorized to delete this review")

            review.status = ReviewStatus.REMOVED.value
            self._recompute_rating(s, review.book_id)
            s.commit()
            logger.info("Removed review %s", review_id)
            return True

        return self.db.atomic(_delete)

    def set_status(
        self,
        review_id: str,
        status: ReviewStatus,
        notes: Optional[str] = None,
    ) -> Review:
        """Moderate a review (publish, hide, flag as reported).

        Args:
            review_id: Review ID
            status: New status
            notes: Moderation notes

        Returns:
            Updated review
        """

        def _moderate(s: Session) -> Review:
            review = self._require_review(s, review_id)
            review.status = status.value
            if notes:
                review.moderation_notes = notes

            self._recompute_rating(s, review.book_id)
            s.commit()
            s.refresh(review)
            s.expunge(review)
            logger.info("Review %s set to %s", review_id, status.value)
            return review

        return self.db.atomic(_moderate)

    # -------------------------------------------------------------------------
    # Statistics
    # -------------------------------------------------------------------------

    def get_book_summary(self, book_id: str) -> BookRatingSummary:
        """Rating breakdown over a book's published reviews.

        Args:
            book_id: Book ID

        Returns:
            BookRatingSummary with distribution and recommend percentage
        """
        reviews = self.list_reviews(book_id=book_id)
        ratings = [r.rating for r in reviews]
        aggregate = aggregate_ratings(ratings)
        recommend = sum(1 for r in reviews if r.would_recommend)

        return BookRatingSummary(
            book_id=UUID(book_id),
            average_rating=aggregate.average_rating,
            total_ratings=aggregate.total_ratings,
            total_reviews=aggregate.total_reviews,
            distribution=rating_distribution(ratings),
            recommend_percentage=round(recommend / len(reviews) * 100, 1) if reviews else 0.0,
        )
