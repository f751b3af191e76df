"""Notification manager and circulation sweeps.

Sweeps turn the lending queries (due soon, overdue, unpaid fines, lapsed
reservations) into in-app notifications. Each sweep creates at most one
notification per transaction and type, so running one repeatedly is safe.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from ..catalog.models import Book
from ..db.models import from_iso, to_iso, utcnow
from ..db.sqlite import Database, get_db
from ..errors import NotFoundError
from ..lending import policy
from ..lending.manager import LendingManager
from ..lending.models import Transaction
from .models import EXPIRY_DAYS, Notification
from .schemas import (
    NotificationCategory,
    NotificationCreate,
    NotificationPriority,
    NotificationStatus,
    NotificationType,
)

logger = logging.getLogger(__name__)

# (title, message, category, priority) for a transaction and its book title
MessageBuilder = Callable[[Transaction, str], tuple[str, str, NotificationCategory, NotificationPriority]]


class NotificationManager:
    """Manages member notifications."""

    def __init__(
        self,
        db: Optional[Database] = None,
        lending: Optional[LendingManager] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize notification manager.

        Args:
            db: Database instance
            lending: Lending manager used by the sweeps
            clock: Callable returning the current aware UTC time
        """
        self.db = db or get_db()
        self._clock = clock or utcnow
        self.lending = lending or LendingManager(self.db, clock=self._clock)

    def _now(self) -> datetime:
        return self._clock()

    # -------------------------------------------------------------------------
    # Notification CRUD
    # -------------------------------------------------------------------------

    def create_notification(self, data: NotificationCreate) -> Notification:
        """Create a notification.

        Args:
            data: Notification creation data

        Returns:
            Created notification
        """
        with self.db.get_session() as session:
            notification = Notification(
                user_id=str(data.user_id),
                type=data.type.value,
                title=data.title,
                message=data.message,
                category=data.category.value,
                priority=data.priority.value,
                delivery_method=data.delivery_method.value,
                related_book_id=str(data.related_book_id) if data.related_book_id else None,
                related_transaction_id=(
                    str(data.related_transaction_id) if data.related_transaction_id else None
                ),
                status=NotificationStatus.SENT.value,
                is_read=False,
                is_active=True,
                expires_at=to_iso(data.expires_at or self._now() + timedelta(days=EXPIRY_DAYS)),
            )
            session.add(notification)
            session.commit()
            session.refresh(notification)
            session.expunge(notification)
            return notification

    def get_notification(self, notification_id: str) -> Optional[Notification]:
        """Get a notification by ID."""
        with self.db.get_session() as session:
            notification = session.get(Notification, notification_id)
            if notification:
                session.expunge(notification)
            return notification

    def list_for_user(
        self,
        user_id: str,
        unread_only: bool = False,
        notification_type: Optional[NotificationType] = None,
        limit: int = 20,
    ) -> list[Notification]:
        """List a user's active notifications, newest first.

        Args:
            user_id: User ID
            unread_only: Skip notifications already read
            notification_type: Filter by type
            limit: Maximum number of notifications

        Returns:
            List of notifications
        """
        with self.db.get_session() as session:
            stmt = select(Notification).where(
                Notification.user_id == user_id,
                Notification.is_active == True,  # noqa: E712
            )
            if unread_only:
                stmt = stmt.where(Notification.is_read == False)  # noqa: E712
            if notification_type:
                stmt = stmt.where(Notification.type == notification_type.value)

            stmt = stmt.order_by(Notification.created_at.desc()).limit(limit)

            notifications = session.execute(stmt).scalars().all()
            for n in notifications:
                session.expunge(n)
            return list(notifications)

    def mark_read(self, notification_id: str) -> Notification:
        """Mark a notification as read.

        Args:
            notification_id: Notification ID

        Returns:
            Updated notification
        """
        with self.db.get_session() as session:
            notification = session.get(Notification, notification_id)
            if not notification:
                raise NotFoundError(f"Notification {notification_id} not found")

            if not notification.is_read:
                notification.is_read = True
                notification.read_at = to_iso(self._now())
                notification.status = NotificationStatus.READ.value

            session.commit()
            session.refresh(notification)
            session.expunge(notification)
            return notification

    def mark_all_read(self, user_id: str) -> int:
        """Mark every unread notification of a user as read.

        Returns:
            Number of notifications updated
        """
        with self.db.get_session() as session:
            result = session.execute(
                update(Notification)
                .where(
                    Notification.user_id == user_id,
                    Notification.is_read == False,  # noqa: E712
                )
                .values(
                    is_read=True,
                    read_at=to_iso(self._now()),
                    status=NotificationStatus.READ.value,
                )
            )
            session.commit()
            return result.rowcount or 0

    def delete_notification(self, notification_id: str) -> bool:
        """Delete a notification.

        Returns:
            True if deleted
        """
        with self.db.get_session() as session:
            notification = session.get(Notification, notification_id)
            if not notification:
                return False
            session.delete(notification)
            session.commit()
            return True

    def cleanup_expired(self) -> int:
        """Deactivate notifications past their expiry.

        Returns:
            Number of notifications deactivated
        """
        with self.db.get_session() as session:
            result = session.execute(
                update(Notification)
                .where(
                    Notification.expires_at < to_iso(self._now()),
                    Notification.is_active == True,  # noqa: E712
                )
                .values(is_active=False)
            )
            session.commit()
            count = result.rowcount or 0
            if count:
                logger.info("Deactivated %d expired notification(s)", count)
            return count

    # -------------------------------------------------------------------------
    # Sweeps
    # -------------------------------------------------------------------------

    def _stage_notices(
        self,
        s: Session,
        transactions: list[Transaction],
        notification_type: NotificationType,
        build: MessageBuilder,
    ) -> list[Notification]:
        """Add one notification per transaction to ``s`` unless it already has one of this type."""
        now = self._now()
        created = []
        for txn in transactions:
            already = s.execute(
                select(Notification.id).where(
                    Notification.related_transaction_id == txn.id,
                    Notification.type == notification_type.value,
                )
            ).first()
            if already:
                continue

            book = s.get(Book, txn.book_id)
            title, message, category, priority = build(txn, book.title if book else "a book")
            notification = Notification(
                user_id=txn.user_id,
                type=notification_type.value,
                title=title,
                message=message,
                category=category.value,
                priority=priority.value,
                related_book_id=txn.book_id,
                related_transaction_id=txn.id,
                status=NotificationStatus.SENT.value,
                is_read=False,
                is_active=True,
                expires_at=to_iso(now + timedelta(days=EXPIRY_DAYS)),
            )
            s.add(notification)
            created.append(notification)
        return created

    @staticmethod
    def _commit_notices(s: Session, created: list[Notification]) -> list[Notification]:
        s.commit()
        for notification in created:
            s.refresh(notification)
            s.expunge(notification)
        return created

    def _notify_once(
        self,
        transactions: list[Transaction],
        notification_type: NotificationType,
        build: MessageBuilder,
    ) -> list[Notification]:
        """Stage and commit notices for detached transactions in one unit of work."""
        if not transactions:
            return []

        def _work(s: Session) -> list[Notification]:
            created = self._stage_notices(s, transactions, notification_type, build)
            return self._commit_notices(s, created)

        created = self.db.atomic(_work)
        logger.info("Sent %d %s notification(s)", len(created), notification_type.value)
        return created

    def send_due_reminders(self, days: Optional[int] = None) -> list[Notification]:
        """Remind borrowers of loans falling due within ``days`` days."""

        def build(txn: Transaction, book_title: str):
            due = from_iso(txn.due_date)
            return (
                "Book due soon",
                f"'{book_title}' is due on {due:%Y-%m-%d}.",
                NotificationCategory.REMINDER,
                NotificationPriority.MEDIUM,
            )

        return self._notify_once(
            self.lending.find_due_soon(days), NotificationType.BOOK_DUE_REMINDER, build
        )

    def send_overdue_notices(self) -> list[Notification]:
        """Notify borrowers of overdue loans and the fine accrued so far."""
        now = self._now()

        def build(txn: Transaction, book_title: str):
            days = policy.days_overdue(from_iso(txn.due_date), now)
            fine = policy.calculate_fine(days)
            return (
                "Book overdue",
                f"'{book_title}' is {days} day(s) overdue. Current fine: ${fine:.2f}.",
                NotificationCategory.URGENT,
                NotificationPriority.HIGH,
            )

        return self._notify_once(
            self.lending.find_overdue(now), NotificationType.BOOK_OVERDUE, build
        )

    def send_fine_notices(self) -> list[Notification]:
        """Notify users of unpaid fines."""
        with self.db.get_session() as session:
            stmt = select(Transaction).where(
                Transaction.fine_status == "pending",
                Transaction.fine_amount > 0,
            )
            unpaid = list(session.execute(stmt).scalars().all())
            for txn in unpaid:
                session.expunge(txn)

        def build(txn: Transaction, book_title: str):
            return (
                "Outstanding fine",
                f"You have an outstanding fine of ${txn.fine_amount:.2f} for '{book_title}'.",
                NotificationCategory.IMPORTANT,
                NotificationPriority.HIGH,
            )

        return self._notify_once(unpaid, NotificationType.FINE_NOTICE, build)

    def send_reservation_expiry_notices(self) -> list[Notification]:
        """Cancel lapsed reservations and tell their holders.

        Cancellations and their notices commit in one unit of work.
        """

        def build(txn: Transaction, book_title: str):
            return (
                "Reservation expired",
                f"Your reservation for '{book_title}' has expired.",
                NotificationCategory.INFO,
                NotificationPriority.LOW,
            )

        def _work(s: Session) -> list[Notification]:
            expired = self.lending.cancel_lapsed_reservations(s, self._now())
            created = self._stage_notices(
                s, expired, NotificationType.RESERVATION_EXPIRED, build
            )
            return self._commit_notices(s, created)

        created = self.db.atomic(_work)
        logger.info(
            "Sent %d %s notification(s)", len(created), NotificationType.RESERVATION_EXPIRED.value
        )
        return created
