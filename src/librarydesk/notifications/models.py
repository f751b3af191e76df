"""SQLAlchemy models for member notifications.

Tables:
- notifications: In-app messages about loans, fines and reservations
"""

from typing import Optional

from sqlalchemy import Boolean, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ..db.models import Base, from_iso, generate_uuid, now_iso, utcnow
from .schemas import DeliveryMethod, NotificationCategory, NotificationPriority, NotificationStatus

EXPIRY_DAYS = 30


class Notification(Base):
    """Notification model - one message to one user."""

    __tablename__ = "notifications"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=False, index=True
    )

    type: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(20), default=NotificationCategory.INFO.value)
    priority: Mapped[str] = mapped_column(String(20), default=NotificationPriority.MEDIUM.value)

    # Related records
    related_book_id: Mapped[Optional[str]] = mapped_column(String(36))
    related_transaction_id: Mapped[Optional[str]] = mapped_column(String(36), index=True)

    # Delivery
    status: Mapped[str] = mapped_column(String(20), default=NotificationStatus.PENDING.value)
    delivery_method: Mapped[str] = mapped_column(String(20), default=DeliveryMethod.IN_APP.value)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False)
    read_at: Mapped[Optional[str]] = mapped_column(String(25))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    expires_at: Mapped[Optional[str]] = mapped_column(String(25), index=True)

    # Timestamps
    created_at: Mapped[str] = mapped_column(String(25), default=now_iso)
    updated_at: Mapped[str] = mapped_column(String(25), default=now_iso, onupdate=now_iso)

    __table_args__ = (
        Index("ix_notifications_user_created", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Notification(id={self.id}, type={self.type}, user_id={self.user_id})>"

    @property
    def is_expired(self) -> bool:
        """Check if the notification is past its expiry."""
        expires = from_iso(self.expires_at)
        return expires is not None and utcnow() > expires
