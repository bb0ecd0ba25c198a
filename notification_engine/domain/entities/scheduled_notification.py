"""Domain entity representing a notification waiting for its delivery time."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from .notification import NotificationRequest


class ScheduledStatus(str, Enum):
    """Lifecycle of a scheduled notification."""

    PENDING = "pending"
    PROCESSING = "processing"
    SENT = "sent"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATUSES


_TERMINAL_STATUSES = frozenset(
    {ScheduledStatus.SENT, ScheduledStatus.FAILED, ScheduledStatus.CANCELLED}
)


@dataclass
class ScheduledNotification:
    """A notification request together with its delivery bookkeeping."""

    id: int | None
    request: NotificationRequest
    status: ScheduledStatus = ScheduledStatus.PENDING
    sent_count: int = 0
    failure_count: int = 0
    sent_at: datetime | None = None
    created_by: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def scheduled_at(self) -> datetime | None:
        return self.request.scheduled_at

    @property
    def event_type(self) -> str:
        return self.request.event_type


__all__ = ["ScheduledStatus", "ScheduledNotification"]
