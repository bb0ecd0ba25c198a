"""Domain entity for reusable notification content kept by administrators."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from .notification import NotificationCategory, NotificationType


@dataclass
class NotificationTemplate:
    """Prefilled title and content an administrator can start a notification from."""

    id: int | None
    name: str
    event_type: str
    title: str
    content: str
    description: str | None = None
    notification_type: NotificationType = NotificationType.INFO
    category: NotificationCategory = NotificationCategory.SYSTEM
    variables: list[str] = field(default_factory=list)
    is_active: bool = True
    created_by: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


__all__ = ["NotificationTemplate"]
