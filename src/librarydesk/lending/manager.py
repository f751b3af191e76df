"""Lending manager for the circulation lifecycle.

Every mutating operation runs as one unit of work through
``Database.atomic``: the availability, duplicate and limit checks, the
transaction row, the book's copy count and the user's loan list are read
and written in a single session, and a conflicting concurrent writer makes
the whole unit retry from its checks.
"""

import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import Callable, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..catalog.models import Book
from ..catalog.schemas import BookCondition
from ..catalog.store import CatalogStore
from ..config import get_config
from ..db.models import from_iso, to_iso, utcnow
from ..db.sqlite import Database, get_db
from ..errors import (
    DuplicateLoanError,
    LimitExceededError,
    NotActiveError,
    NotFoundError,
    NotRenewableError,
    UnavailableError,
)
from ..membership.models import User
from ..membership.store import MembershipStore
from . import policy
from .models import Transaction
from .schemas import (
    AvailabilityDiscrepancy,
    FineReason,
    FineStatus,
    FineUpdate,
    GenreCount,
    LendingStats,
    OverdueReport,
    TransactionStatus,
    TransactionSummary,
    TransactionType,
    UserLendingStats,
)

logger = logging.getLogger(__name__)


class LendingManager:
    """Manages borrowing, returns, renewals, reservations and fines."""

    def __init__(
        self,
        db: Optional[Database] = None,
        catalog: Optional[CatalogStore] = None,
        members: Optional[MembershipStore] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize lending manager.

        Args:
            db: Database instance
            catalog: Catalog store sharing the same database
            members: Membership store sharing the same database
            clock: Callable returning the current aware UTC time
        """
        self.db = db or get_db()
        self.catalog = catalog or CatalogStore(self.db)
        self.members = members or MembershipStore(self.db)
        self._clock = clock or utcnow

    def _now(self) -> datetime:
        return self._clock()

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _require_transaction(self, s: Session, transaction_id: str) -> Transaction:
        txn = s.get(Transaction, transaction_id)
        if not txn:
            raise NotFoundError(f"Transaction {transaction_id} not found")
        return txn

    def _open_for_pair(self, s: Session, user_id: str, book_id: str) -> list[Transaction]:
        stmt = select(Transaction).where(
            Transaction.user_id == user_id,
            Transaction.book_id == book_id,
            Transaction.status.in_(policy.OPEN_STATUSES),
        )
        return list(s.execute(stmt).scalars().all())

    def _active_count(self, s: Session, user_id: str) -> int:
        return s.execute(
            select(func.count())
            .select_from(Transaction)
            .where(Transaction.user_id == user_id, Transaction.status == "active")
        ).scalar() or 0

    @staticmethod
    def _finish(s: Session, txn: Transaction) -> Transaction:
        s.commit()
        s.refresh(txn)
        s.expunge(txn)
        return txn

    # -------------------------------------------------------------------------
    # Borrow / Return / Renew
    # -------------------------------------------------------------------------

    def borrow(
        self,
        user_id: str,
        book_id: str,
        is_digital: Optional[bool] = None,
        notes: Optional[str] = None,
        processed_by: Optional[str] = None,
    ) -> Transaction:
        """Lend a copy of a book to a user.

        A pending reservation the user holds for the book is converted into
        the loan rather than left open beside it.

        Args:
            user_id: Borrowing user
            book_id: Book to lend
            is_digital: Digital loan (default: derived from the book's format)
            notes: Free-form notes
            processed_by: Staff user recording the loan

        Returns:
            The active loan

        Raises:
            NotFoundError: Book or user missing
            UnavailableError: No copy can be lent
            DuplicateLoanError: User already holds this book
            LimitExceededError: User is at their membership limit
        """

        def _borrow(s: Session) -> Transaction:
            now = self._now()
            book = self.catalog.require_book(s, book_id)
            if not book.can_be_borrowed:
                raise UnavailableError(f"'{book.title}' is not available for borrowing")

            user = self.members.require_user(s, user_id)

            open_txns = self._open_for_pair(s, user_id, book_id)
            if any(t.status == "active" for t in open_txns):
                raise DuplicateLoanError("You already have this book borrowed")

            limit = user.loan_limit
            if self._active_count(s, user_id) >= limit:
                raise LimitExceededError(
                    f"Loan limit of {limit} reached for {user.membership_type} membership"
                )

            digital = book.is_digital if is_digital is None else is_digital
            reservation = next((t for t in open_txns if t.status == "pending"), None)
            if reservation is not None:
                txn = reservation
            else:
                txn = Transaction(user_id=user_id, book_id=book_id)
                s.add(txn)

            txn.type = TransactionType.BORROW.value
            txn.status = TransactionStatus.ACTIVE.value
            txn.borrow_date = to_iso(now)
            txn.due_date = to_iso(policy.due_date_for(now, digital))
            txn.is_digital = digital
            txn.book_condition_at_borrow = book.condition
            txn.renewal_count = 0
            txn.fine_amount = 0.0
            txn.fine_status = FineStatus.NONE.value
            if notes:
                txn.notes = notes
            if processed_by:
                txn.processed_by = processed_by

            self.catalog.adjust_available(book, -1)
            book.total_borrows = (book.total_borrows or 0) + 1
            book.last_borrowed_at = to_iso(now)
            self.catalog.refresh_scores(book, now)
            self.members.add_borrowed_book(user, book.id)

            txn = self._finish(s, txn)
            logger.info(
                "User %s borrowed book %s (transaction %s, due %s)",
                user_id, book_id, txn.id, txn.due_date,
            )
            return txn

        return self.db.atomic(_borrow)

    def return_book(
        self,
        transaction_id: str,
        condition: Optional[BookCondition] = None,
        notes: Optional[str] = None,
        waive_fine: bool = False,
        returned_at: Optional[datetime] = None,
    ) -> Transaction:
        """Close an active loan and put the copy back on the shelf.

        Args:
            transaction_id: Loan to close
            condition: Condition of the returned copy
            notes: Condition notes
            waive_fine: Waive any late fine immediately
            returned_at: Return time (default: now)

        Returns:
            The completed transaction carrying any late fine
        """

        def _return(s: Session) -> Transaction:
            txn = self._require_transaction(s, transaction_id)
            if txn.status != "active":
                raise NotActiveError(
                    f"Transaction is not active (status: {txn.status})"
                )

            when = returned_at or self._now()
            days_late = policy.days_overdue(from_iso(txn.due_date), when)
            fine = policy.calculate_fine(days_late)

            txn.status = TransactionStatus.COMPLETED.value
            txn.return_date = to_iso(when)
            txn.actual_return_date = to_iso(when)
            if condition is not None:
                txn.book_condition_at_return = getattr(condition, "value", condition)
            if notes:
                txn.condition_notes = notes

            if fine > 0:
                txn.fine_amount = fine
                txn.fine_reason = FineReason.LATE_RETURN.value
                txn.fine_status = (
                    FineStatus.WAIVED.value if waive_fine else FineStatus.PENDING.value
                )

            book = self.catalog.get_book(txn.book_id, session=s, include_deleted=True)
            if book:
                self.catalog.adjust_available(book, 1)
            user = self.members.get_user(txn.user_id, session=s, include_inactive=True)
            if user:
                self.members.remove_borrowed_book(user, txn.book_id)

            txn = self._finish(s, txn)
            logger.info(
                "Transaction %s returned, %d day(s) late, fine %.2f",
                transaction_id, days_late, fine,
            )
            return txn

        return self.db.atomic(_return)

    def renew(self, transaction_id: str, days: int = policy.DEFAULT_RENEWAL_DAYS) -> Transaction:
        """Extend an active loan.

        The new due date is counted from now, not from the old due date.

        Args:
            transaction_id: Loan to renew
            days: Length of the extension (1-30)

        Returns:
            The renewed transaction
        """
        if not 1 <= days <= policy.MAX_RENEWAL_DAYS:
            raise ValueError(f"Renewal must be between 1 and {policy.MAX_RENEWAL_DAYS} days")

        def _renew(s: Session) -> Transaction:
            now = self._now()
            txn = self._require_transaction(s, transaction_id)
            reason = policy.renewal_blocker(
                txn.type,
                txn.status,
                txn.renewal_count or 0,
                from_iso(txn.due_date),
                now,
                txn.max_renewals or policy.MAX_RENEWALS,
            )
            if reason:
                raise NotRenewableError(reason)

            txn.renewal_count = (txn.renewal_count or 0) + 1
            txn.last_renewal_date = to_iso(now)
            txn.due_date = to_iso(now + timedelta(days=days))
            txn.type = TransactionType.RENEW.value

            txn = self._finish(s, txn)
            logger.info(
                "Transaction %s renewed (%d/%d), due %s",
                transaction_id, txn.renewal_count, txn.max_renewals, txn.due_date,
            )
            return txn

        return self.db.atomic(_renew)

    # -------------------------------------------------------------------------
    # Reservations
    # -------------------------------------------------------------------------

    def reserve(self, user_id: str, book_id: str) -> Transaction:
        """Place a hold on a book.

        A lapsed hold by the same user is cancelled and replaced.

        Args:
            user_id: Reserving user
            book_id: Book to hold

        Returns:
            The pending reservation
        """

        def _reserve(s: Session) -> Transaction:
            now = self._now()
            self.catalog.require_book(s, book_id)
            self.members.require_user(s, user_id)

            for existing in self._open_for_pair(s, user_id, book_id):
                if existing.status == "active":
                    raise DuplicateLoanError("You already have this book borrowed")
                expiry = from_iso(existing.reservation_expiry)
                if expiry is not None and expiry < now:
                    existing.status = TransactionStatus.CANCELLED.value
                    s.flush()
                    logger.debug("Replaced lapsed reservation %s", existing.id)
                else:
                    raise DuplicateLoanError("You already have a reservation for this book")

            txn = Transaction(
                user_id=user_id,
                book_id=book_id,
                type=TransactionType.RESERVE.value,
                status=TransactionStatus.PENDING.value,
                reservation_date=to_iso(now),
                reservation_expiry=to_iso(policy.reservation_expiry_for(now)),
            )
            s.add(txn)

            txn = self._finish(s, txn)
            logger.info("User %s reserved book %s until %s", user_id, book_id, txn.reservation_expiry)
            return txn

        return self.db.atomic(_reserve)

    def cancel_reservation(self, user_id: str, book_id: str) -> Transaction:
        """Cancel a user's pending reservation for a book.

        Returns:
            The cancelled reservation
        """

        def _cancel(s: Session) -> Transaction:
            txn = s.execute(
                select(Transaction).where(
                    Transaction.user_id == user_id,
                    Transaction.book_id == book_id,
                    Transaction.type == TransactionType.RESERVE.value,
                    Transaction.status == TransactionStatus.PENDING.value,
                )
            ).scalar_one_or_none()
            if not txn:
                raise NotFoundError("No active reservation found for this book")

            txn.status = TransactionStatus.CANCELLED.value
            txn.type = TransactionType.CANCEL_RESERVATION.value
            txn = self._finish(s, txn)
            logger.info("User %s cancelled reservation %s", user_id, txn.id)
            return txn

        return self.db.atomic(_cancel)

    def cancel_lapsed_reservations(
        self, session: Session, now: Optional[datetime] = None
    ) -> list[Transaction]:
        """Cancel pending reservations past their hold inside ``session``.

        Nothing is committed, so callers can pair the cancellation with
        their own writes in one unit of work.
        """
        cutoff = to_iso(now or self._now())
        stmt = select(Transaction).where(
            Transaction.status == TransactionStatus.PENDING.value,
            Transaction.reservation_expiry.isnot(None),
            Transaction.reservation_expiry < cutoff,
        )
        expired = list(session.execute(stmt).scalars().all())
        for txn in expired:
            txn.status = TransactionStatus.CANCELLED.value
        return expired

    def expire_reservations(self, now: Optional[datetime] = None) -> list[Transaction]:
        """Cancel every pending reservation whose hold has lapsed.

        Returns:
            The reservations that were cancelled
        """

        def _expire(s: Session) -> list[Transaction]:
            expired = self.cancel_lapsed_reservations(s, now)
            s.commit()
            for txn in expired:
                s.refresh(txn)
                s.expunge(txn)
            return expired

        expired = self.db.atomic(_expire)
        if expired:
            logger.info("Expired %d reservation(s)", len(expired))
        return expired

    # -------------------------------------------------------------------------
    # Lost and damaged copies
    # -------------------------------------------------------------------------

    def _close_as_withdrawn(
        self,
        transaction_id: str,
        status: TransactionStatus,
        txn_type: TransactionType,
        reason: FineReason,
        fine_amount: Optional[float],
        notes: Optional[str],
    ) -> Transaction:
        def _withdraw(s: Session) -> Transaction:
            now = self._now()
            txn = self._require_transaction(s, transaction_id)
            if txn.status != "active":
                raise NotActiveError(
                    f"Transaction is not active (status: {txn.status})"
                )

            amount = policy.LOST_BOOK_FINE if fine_amount is None else fine_amount
            txn.status = status.value
            txn.type = txn_type.value
            txn.return_date = to_iso(now)
            txn.fine_amount = round(amount, 2)
            txn.fine_reason = reason.value
            txn.fine_status = policy.fine_status_for(amount)
            if notes:
                txn.condition_notes = notes

            book = self.catalog.get_book(txn.book_id, session=s, include_deleted=True)
            if book:
                self.catalog.withdraw_copy(book)
            user = self.members.get_user(txn.user_id, session=s, include_inactive=True)
            if user:
                self.members.remove_borrowed_book(user, txn.book_id, finished=False)

            txn = self._finish(s, txn)
            logger.info(
                "Transaction %s closed as %s, fine %.2f", transaction_id, status.value, amount
            )
            return txn

        return self.db.atomic(_withdraw)

    def report_lost(
        self,
        transaction_id: str,
        fine_amount: Optional[float] = None,
        notes: Optional[str] = None,
    ) -> Transaction:
        """Close an active loan whose copy was lost.

        The copy leaves the collection: ``total_copies`` drops by one and
        ``available_copies`` is unchanged.

        Args:
            transaction_id: Loan to close
            fine_amount: Replacement charge (default: the maximum fine)
            notes: Notes about the loss

        Returns:
            The closed transaction
        """
        return self._close_as_withdrawn(
            transaction_id,
            TransactionStatus.LOST,
            TransactionType.LOST_BOOK,
            FineReason.LOST_BOOK,
            fine_amount,
            notes,
        )

    def report_damaged(
        self,
        transaction_id: str,
        fine_amount: Optional[float] = None,
        notes: Optional[str] = None,
    ) -> Transaction:
        """Close an active loan whose copy came back unusable."""
        return self._close_as_withdrawn(
            transaction_id,
            TransactionStatus.DAMAGED,
            TransactionType.DAMAGED_BOOK,
            FineReason.DAMAGED_BOOK,
            fine_amount,
            notes,
        )

    # -------------------------------------------------------------------------
    # Fines
    # -------------------------------------------------------------------------

    def update_fine(
        self, transaction_id: str, data: FineUpdate, require_fine: bool = False
    ) -> Transaction:
        """Administratively change a transaction's fine.

        Args:
            transaction_id: Transaction ID
            data: New amount, reason and/or status
            require_fine: Refuse the change when no fine is recorded

        Returns:
            Updated transaction

        Raises:
            ValueError: require_fine is set and the fine is zero
        """

        def _update(s: Session) -> Transaction:
            txn = self._require_transaction(s, transaction_id)
            if require_fine and not txn.fine_amount:
                raise ValueError("Transaction has no fine")

            if data.amount is not None:
                txn.fine_amount = round(data.amount, 2)
            if data.reason is not None:
                txn.fine_reason = data.reason.value
            if data.status is not None:
                txn.fine_status = data.status.value
                if data.status == FineStatus.PAID:
                    txn.fine_paid_date = to_iso(self._now())

            txn = self._finish(s, txn)
            logger.info(
                "Fine on transaction %s set to %.2f (%s)",
                transaction_id, txn.fine_amount, txn.fine_status,
            )
            return txn

        return self.db.atomic(_update)

    def pay_fine(self, transaction_id: str) -> Transaction:
        """Mark a transaction's fine as paid."""
        return self.update_fine(
            transaction_id, FineUpdate(status=FineStatus.PAID), require_fine=True
        )

    def waive_fine(self, transaction_id: str) -> Transaction:
        """Mark a transaction's fine as waived."""
        return self.update_fine(
            transaction_id, FineUpdate(status=FineStatus.WAIVED), require_fine=True
        )

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        """Get a transaction by ID.

        Args:
            transaction_id: Transaction ID

        Returns:
            Transaction or None
        """
        with self.db.get_session() as session:
            txn = session.get(Transaction, transaction_id)
            if txn:
                session.expunge(txn)
            return txn

    def list_transactions(
        self,
        user_id: Optional[str] = None,
        book_id: Optional[str] = None,
        status: Optional[TransactionStatus] = None,
        transaction_type: Optional[TransactionType] = None,
        limit: Optional[int] = None,
    ) -> list[Transaction]:
        """List transactions with optional filters.

        Filtering by ``overdue`` selects active loans past their due date.

        Args:
            user_id: Filter by user
            book_id: Filter by book
            status: Filter by (effective) status
            transaction_type: Filter by type
            limit: Maximum number of transactions

        Returns:
            List of transactions, newest first
        """
        with self.db.get_session() as session:
            stmt = select(Transaction)

            if user_id:
                stmt = stmt.where(Transaction.user_id == user_id)
            if book_id:
                stmt = stmt.where(Transaction.book_id == book_id)
            if status == TransactionStatus.OVERDUE:
                stmt = stmt.where(*self._overdue_clause(self._now()))
            elif status:
                stmt = stmt.where(Transaction.status == status.value)
            if transaction_type:
                stmt = stmt.where(Transaction.type == transaction_type.value)

            stmt = stmt.order_by(Transaction.created_at.desc())
            if limit:
                stmt = stmt.limit(limit)

            txns = session.execute(stmt).scalars().all()
            for txn in txns:
                session.expunge(txn)
            return list(txns)

    @staticmethod
    def _overdue_clause(now: datetime) -> tuple:
        return (
            Transaction.status == "active",
            Transaction.due_date.isnot(None),
            Transaction.due_date < to_iso(now),
        )

    def find_overdue(self, now: Optional[datetime] = None) -> list[Transaction]:
        """Active loans past their due date, oldest due first."""
        with self.db.get_session() as session:
            stmt = (
                select(Transaction)
                .where(*self._overdue_clause(now or self._now()))
                .order_by(Transaction.due_date)
            )
            txns = session.execute(stmt).scalars().all()
            for txn in txns:
                session.expunge(txn)
            return list(txns)

    def find_due_soon(self, days: Optional[int] = None) -> list[Transaction]:
        """Active loans falling due within ``days`` days from now.

        Args:
            days: Look-ahead window (default: configured due-soon days)

        Returns:
            List of loans ordered by due date
        """
        if days is None:
            days = get_config().due_soon_days
        with self.db.get_session() as session:
            now = self._now()
            stmt = (
                select(Transaction)
                .where(
                    Transaction.status == "active",
                    Transaction.due_date.isnot(None),
                    Transaction.due_date >= to_iso(now),
                    Transaction.due_date <= to_iso(now + timedelta(days=days)),
                )
                .order_by(Transaction.due_date)
            )
            txns = session.execute(stmt).scalars().all()
            for txn in txns:
                session.expunge(txn)
            return list(txns)

    # -------------------------------------------------------------------------
    # Statistics and Reports
    # -------------------------------------------------------------------------

    def get_stats(self) -> LendingStats:
        """Get overall circulation statistics.

        Returns:
            LendingStats with counts and fine totals
        """
        with self.db.get_session() as session:
            now = self._now()

            def count(*clauses) -> int:
                return session.execute(
                    select(func.count()).select_from(Transaction).where(*clauses)
                ).scalar() or 0

            def fine_total(fine_status: str) -> float:
                total = session.execute(
                    select(func.sum(Transaction.fine_amount)).where(
                        Transaction.fine_status == fine_status
                    )
                ).scalar()
                return round(total or 0.0, 2)

            return LendingStats(
                active_loans=count(Transaction.status == "active"),
                overdue_loans=count(*self._overdue_clause(now)),
                pending_reservations=count(Transaction.status == "pending"),
                completed_loans=count(Transaction.status == "completed"),
                lost_or_damaged=count(Transaction.status.in_(("lost", "damaged"))),
                fines_outstanding=fine_total("pending"),
                fines_collected=fine_total("paid"),
            )

    def get_overdue_report(self) -> OverdueReport:
        """Get report of overdue loans with accrued fines.

        Returns:
            OverdueReport with overdue loans
        """
        now = self._now()
        summaries = []
        oldest_days = 0
        total_fines = 0.0

        with self.db.get_session() as session:
            stmt = (
                select(Transaction, Book.title, User.first_name, User.last_name)
                .join(Book, Book.id == Transaction.book_id)
                .join(User, User.id == Transaction.user_id)
                .where(*self._overdue_clause(now))
                .order_by(Transaction.due_date)
            )
            for txn, title, first_name, last_name in session.execute(stmt).all():
                days = policy.days_overdue(from_iso(txn.due_date), now)
                fine = policy.calculate_fine(days)
                summaries.append(
                    TransactionSummary(
                        id=UUID(txn.id),
                        book_title=title,
                        user_name=f"{first_name} {last_name}",
                        type=TransactionType(txn.type),
                        status=TransactionStatus.OVERDUE,
                        due_date=from_iso(txn.due_date),
                        days_overdue=days,
                        accrued_fine=fine,
                    )
                )
                oldest_days = max(oldest_days, days)
                total_fines += fine

        return OverdueReport(
            loans=summaries,
            total_overdue=len(summaries),
            oldest_overdue_days=oldest_days,
            total_accrued_fines=round(total_fines, 2),
        )

    def get_user_stats(self, user_id: str) -> UserLendingStats:
        """Get borrowing statistics for one member.

        Args:
            user_id: User ID

        Returns:
            UserLendingStats for the member
        """
        with self.db.get_session() as session:
            now = self._now()
            user = self.members.get_user(user_id, session=session, include_inactive=True)
            if not user:
                raise NotFoundError(f"User {user_id} not found")

            rows = session.execute(
                select(Transaction, Book.genre)
                .join(Book, Book.id == Transaction.book_id)
                .where(Transaction.user_id == user_id)
            ).all()

            active = [t for t, _ in rows if t.status == "active"]
            overdue = [
                t for t in active if policy.is_overdue(t.status, from_iso(t.due_date), now)
            ]
            completed = [(t, genre) for t, genre in rows if t.status == "completed"]

            durations = []
            for txn, _ in completed:
                start, end = from_iso(txn.borrow_date), from_iso(txn.return_date)
                if start and end:
                    durations.append((end - start).total_seconds() / 86400)
            average_days = round(sum(durations) / len(durations), 1) if durations else 0.0

            genres = Counter(genre for _, genre in completed if genre)
            outstanding = sum(
                t.fine_amount or 0.0 for t, _ in rows if t.fine_status == "pending"
            )

            limit = user.loan_limit
            return UserLendingStats(
                user_id=UUID(user.id),
                membership_type=user.membership_type,
                loan_limit=limit,
                active_loans=len(active),
                overdue_loans=len(overdue),
                remaining_loans=max(0, limit - len(active)),
                total_books_borrowed=user.total_books_borrowed or 0,
                total_books_read=user.total_books_read or 0,
                average_loan_days=average_days,
                outstanding_fines=round(outstanding, 2),
                favorite_genres=[
                    GenreCount(genre=genre, count=n) for genre, n in genres.most_common(3)
                ],
            )

    def audit_availability(self) -> list[AvailabilityDiscrepancy]:
        """Find books whose shelf count disagrees with their active loans.

        For every live book ``total_copies - available_copies`` must equal
        the number of active loans of that book.

        Returns:
            List of discrepancies (empty when consistent)
        """
        with self.db.get_session() as session:
            loan_counts = dict(
                session.execute(
                    select(Transaction.book_id, func.count())
                    .where(Transaction.status == "active")
                    .group_by(Transaction.book_id)
                ).all()
            )
            books = session.execute(
                select(Book).where(Book.is_deleted == False)  # noqa: E712
            ).scalars().all()

            discrepancies = []
            for book in books:
                active = loan_counts.get(book.id, 0)
                if (
                    book.available_copies < 0
                    or book.available_copies > book.total_copies
                    or book.on_loan != active
                ):
                    discrepancies.append(
                        AvailabilityDiscrepancy(
                            book_id=UUID(book.id),
                            title=book.title,
                            total_copies=book.total_copies,
                            available_copies=book.available_copies,
                            active_loans=active,
                        )
                    )
            if discrepancies:
                logger.warning("%d book(s) have inconsistent copy counts", len(discrepancies))
            return discrepancies
