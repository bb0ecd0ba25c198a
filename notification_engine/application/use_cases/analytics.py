"""Record and aggregate notification delivery and engagement events."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime

from sqlalchemy.orm import Session

from notification_engine.domain.entities import (
    AnalyticsAction,
    NotificationAnalyticsEvent,
    NotificationAnalyticsSummary,
    compute_rate,
)
from notification_engine.domain.errors import NotificationValidationError
from notification_engine.infrastructure.repositories import AnalyticsRepository
from notification_engine.utils import now_in_app_timezone

logger = logging.getLogger(__name__)


def record_events(session: Session, events: Iterable[NotificationAnalyticsEvent]) -> int:
    """Append ``events``; failures are logged and never propagated."""

    events = list(events)
    if not events:
        return 0
    for event in events:
        if event.timestamp is None:
            event.timestamp = now_in_app_timezone()
    try:
        return AnalyticsRepository(session).add_many(events)
    except Exception:
        session.rollback()
        logger.exception("Failed to record %s notification analytics event(s)", len(events))
        return 0


def record_event(
    session: Session,
    *,
    user_id: int,
    event_type: str,
    action: AnalyticsAction | str,
    notification_id: int | None = None,
    scheduled_notification_id: int | None = None,
    action_url: str | None = None,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> bool:
    """Append a single analytics event; returns ``False`` when it was not stored."""

    try:
        action = AnalyticsAction(action)
    except ValueError:
        logger.warning("Ignoring analytics event with unknown action %r", action)
        return False
    event = NotificationAnalyticsEvent(
        id=None,
        user_id=user_id,
        event_type=event_type,
        action=action,
        notification_id=notification_id,
        scheduled_notification_id=scheduled_notification_id,
        action_url=action_url,
        user_agent=user_agent,
        ip_address=ip_address,
    )
    return record_events(session, [event]) == 1


def get_notification_analytics(
    session: Session,
    *,
    start: datetime | None = None,
    end: datetime | None = None,
    event_type: str | None = None,
) -> NotificationAnalyticsSummary:
    """Return delivery and engagement totals, optionally filtered."""

    if start is not None and end is not None and start > end:
        raise NotificationValidationError("The start date must not be after the end date")

    counts = AnalyticsRepository(session).count_by_action(
        start=start, end=end, event_type=event_type
    )
    action_counts = {action.value: counts.get(action.value, 0) for action in AnalyticsAction}
    total_sent = action_counts[AnalyticsAction.DELIVERED.value]
    total_read = action_counts[AnalyticsAction.READ.value]
    total_clicked = action_counts[AnalyticsAction.CLICKED.value]
    return NotificationAnalyticsSummary(
        total_sent=total_sent,
        total_read=total_read,
        total_clicked=total_clicked,
        read_rate=compute_rate(total_read, total_sent),
        click_rate=compute_rate(total_clicked, total_read),
        action_counts=action_counts,
    )


__all__ = ["record_event", "record_events", "get_notification_analytics"]
