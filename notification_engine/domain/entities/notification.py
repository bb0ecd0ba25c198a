"""Domain entities describing notification requests and in-app records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from .audience import AudienceDescriptor

DEFAULT_EVENT_TYPE = "system.announcement"


class NotificationType(str, Enum):
    """Visual kind of a notification."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    ANNOUNCEMENT = "announcement"


class NotificationPriority(str, Enum):
    """Priority shown next to an in-app notification."""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"

    @classmethod
    def for_type(cls, notification_type: NotificationType) -> "NotificationPriority":
        if notification_type is NotificationType.ERROR:
            return cls.URGENT
        return cls.NORMAL


class NotificationCategory(str, Enum):
    """Area of the application a notification belongs to."""

    SYSTEM = "system"
    CONTRIBUTION = "contribution"
    USER = "user"
    ADMIN = "admin"
    CHANGELOG = "changelog"
    MAINTENANCE = "maintenance"


@dataclass(frozen=True)
class NotificationRequest:
    """Content and targeting of a notification authored by an administrator."""

    title: str
    content: str
    notification_type: NotificationType
    audience: AudienceDescriptor
    event_type: str = DEFAULT_EVENT_TYPE
    scheduled_at: datetime | None = None
    expires_at: datetime | None = None
    action_url: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class InAppNotification:
    """Notification stored for a single recipient and shown in their inbox."""

    id: int | None
    user_id: int
    title: str
    content: str
    event_type: str
    notification_type: NotificationType = NotificationType.INFO
    priority: NotificationPriority = NotificationPriority.NORMAL
    category: NotificationCategory = NotificationCategory.SYSTEM
    is_read: bool = False
    read_at: datetime | None = None
    action_url: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    expires_at: datetime | None = None
    created_by: int | None = None
    created_at: datetime | None = None
    scheduled_notification_id: int | None = None


__all__ = [
    "DEFAULT_EVENT_TYPE",
    "NotificationType",
    "NotificationPriority",
    "NotificationCategory",
    "NotificationRequest",
    "InAppNotification",
]
