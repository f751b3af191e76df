"""Pydantic schemas for member notifications."""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class NotificationType(str, Enum):
    """What a notification is about."""

    BOOK_DUE_REMINDER = "book_due_reminder"
    BOOK_OVERDUE = "book_overdue"
    RESERVATION_EXPIRED = "reservation_expired"
    FINE_NOTICE = "fine_notice"
    SYSTEM_ANNOUNCEMENT = "system_announcement"


class NotificationCategory(str, Enum):
    """Notification category."""

    URGENT = "urgent"
    IMPORTANT = "important"
    INFO = "info"
    REMINDER = "reminder"


class NotificationPriority(str, Enum):
    """Notification priority."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class NotificationStatus(str, Enum):
    """Delivery state of a notification."""

    PENDING = "pending"
    SENT = "sent"
    READ = "read"
    CANCELLED = "cancelled"


class DeliveryMethod(str, Enum):
    """Channel a notification is delivered through."""

    IN_APP = "in_app"
    EMAIL = "email"
    SMS = "sms"
    PUSH = "push"


class NotificationCreate(BaseModel):
    """Schema for creating a notification."""

    user_id: UUID
    type: NotificationType
    title: str = Field(..., min_length=1, max_length=100)
    message: str = Field(..., min_length=1, max_length=500)
    category: NotificationCategory = NotificationCategory.INFO
    priority: NotificationPriority = NotificationPriority.MEDIUM
    delivery_method: DeliveryMethod = DeliveryMethod.IN_APP
    related_book_id: Optional[UUID] = None
    related_transaction_id: Optional[UUID] = None
    expires_at: Optional[datetime] = None


class NotificationResponse(BaseModel):
    """Schema for notification responses."""

    id: UUID
    user_id: UUID
    type: NotificationType
    title: str
    message: str
    category: NotificationCategory
    priority: NotificationPriority
    status: NotificationStatus
    delivery_method: DeliveryMethod
    is_read: bool
    related_book_id: Optional[UUID]
    related_transaction_id: Optional[UUID]
    read_at: Optional[datetime]
    expires_at: Optional[datetime]
    created_at: datetime

    model_config = {"from_attributes": True}
