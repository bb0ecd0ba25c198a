"""Use cases backing a user's in-app notification inbox."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime

from sqlalchemy.orm import Session

from notification_engine.domain.entities import (
    AnalyticsAction,
    InAppNotification,
    NotificationAnalyticsEvent,
)
from notification_engine.domain.errors import NotFoundError, NotificationValidationError
from notification_engine.infrastructure.repositories import InAppNotificationRepository
from notification_engine.utils import now_in_app_timezone

from .analytics import record_events

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


def list_notifications(
    session: Session,
    user_id: int,
    *,
    unread_only: bool = False,
    limit: int = 50,
    offset: int = 0,
) -> Sequence[InAppNotification]:
    """Return the user's unexpired notifications, newest first."""

    if limit < 1 or limit > MAX_PAGE_SIZE:
        raise NotificationValidationError(f"Limit must be between 1 and {MAX_PAGE_SIZE}")
    if offset < 0:
        raise NotificationValidationError("Offset must not be negative")
    return InAppNotificationRepository(session).list_for_user(
        user_id, unread_only=unread_only, limit=limit, offset=offset
    )


def unread_count(session: Session, user_id: int) -> int:
    return InAppNotificationRepository(session).count_unread(user_id)


def get_notification(session: Session, user_id: int, notification_id: int) -> InAppNotification:
    notification = InAppNotificationRepository(session).get_for_user(notification_id, user_id)
    if notification is None:
        raise NotFoundError(f"Notification {notification_id} not found")
    return notification


def mark_read(session: Session, user_id: int, notification_id: int) -> InAppNotification:
    """Mark one notification as read and log the ``read`` action once."""

    repository = InAppNotificationRepository(session)
    notification = repository.get(notification_id)
    if notification is None or notification.user_id != user_id:
        raise NotFoundError(f"Notification {notification_id} not found")
    changed = repository.mark_as_read([notification_id], user_id=user_id)
    _record_reads(session, changed)
    return changed[0] if changed else notification


def mark_all_read(session: Session, user_id: int) -> int:
    changed = InAppNotificationRepository(session).mark_as_read(None, user_id=user_id)
    _record_reads(session, changed)
    return len(changed)


def delete_notification(session: Session, user_id: int, notification_id: int) -> None:
    if not InAppNotificationRepository(session).delete(notification_id, user_id=user_id):
        raise NotFoundError(f"Notification {notification_id} not found")


def clear_notifications(session: Session, user_id: int) -> int:
    return InAppNotificationRepository(session).delete_all_for_user(user_id)


def expire_notifications(session: Session, *, now: datetime | None = None) -> int:
    """Delete notifications whose expiry date has passed."""

    removed = InAppNotificationRepository(session).delete_expired(now or now_in_app_timezone())
    if removed:
        logger.info("Removed %s expired in-app notification(s)", removed)
    return removed


def _record_reads(session: Session, notifications: Sequence[InAppNotification]) -> None:
    record_events(
        session,
        [
            NotificationAnalyticsEvent(
                id=None,
                user_id=notification.user_id,
                event_type=notification.event_type,
                action=AnalyticsAction.READ,
                notification_id=notification.id,
                scheduled_notification_id=notification.scheduled_notification_id,
            )
            for notification in notifications
        ],
    )


__all__ = [
    "list_notifications",
    "unread_count",
    "get_notification",
    "mark_read",
    "mark_all_read",
    "delete_notification",
    "clear_notifications",
    "expire_notifications",
]
