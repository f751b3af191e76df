"""Member notification module.

Provides functionality for:
- In-app notifications with read state and expiry
- Due-soon, overdue, fine and reservation sweeps
"""

from .manager import NotificationManager
from .models import Notification
from .schemas import (
    DeliveryMethod,
    NotificationCategory,
    NotificationCreate,
    NotificationPriority,
    NotificationResponse,
    NotificationStatus,
    NotificationType,
)

__all__ = [
    "NotificationManager",
    "Notification",
    "NotificationCreate",
    "NotificationResponse",
    "NotificationType",
    "NotificationCategory",
    "NotificationPriority",
    "NotificationStatus",
    "DeliveryMethod",
]
