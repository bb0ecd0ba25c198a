"""Entities describing notification engagement analytics."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class AnalyticsAction(str, Enum):
    """Engagement step recorded for a notification."""

    DELIVERED = "delivered"
    READ = "read"
    CLICKED = "clicked"
    DISMISSED = "dismissed"
    EXPIRED = "expired"


@dataclass
class NotificationAnalyticsEvent:
    """Append-only record of an action taken on a notification."""

    id: int | None
    user_id: int
    event_type: str
    action: AnalyticsAction
    notification_id: int | None = None
    scheduled_notification_id: int | None = None
    action_url: str | None = None
    user_agent: str | None = None
    ip_address: str | None = None
    timestamp: datetime | None = None


@dataclass(frozen=True)
class NotificationAnalyticsSummary:
    """Aggregated engagement figures."""

    total_sent: int
    total_read: int
    total_clicked: int
    read_rate: float
    click_rate: float
    action_counts: dict[str, int] = field(default_factory=dict)


def compute_rate(numerator: int, denominator: int) -> float:
    """Return ``numerator / denominator`` as a percentage rounded to 2 places."""

    if denominator <= 0:
        return 0.0
    return round(numerator / denominator * 100, 2)


__all__ = [
    "AnalyticsAction",
    "NotificationAnalyticsEvent",
    "NotificationAnalyticsSummary",
    "compute_rate",
]
