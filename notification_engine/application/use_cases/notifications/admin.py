"""Administrator-facing notification use cases."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy.orm import Session

from notification_engine.domain.entities import (
    AnalyticsAction,
    NotificationRequest,
    NotificationType,
    ScheduledNotification,
    ScheduledStatus,
)
from notification_engine.domain.errors import (
    InvalidStateTransitionError,
    NotFoundError,
    NotificationValidationError,
)
from notification_engine.infrastructure.repositories import (
    InAppNotificationRepository,
    ScheduledNotificationRepository,
)
from notification_engine.infrastructure.webhooks.retry import Dispatcher

from ..analytics import record_event
from .fanout import NotificationFanout

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


def validate_request(request: NotificationRequest) -> NotificationRequest:
    """Reject requests that cannot be delivered."""

    if not request.title or not request.title.strip():
        raise NotificationValidationError("Title is required")
    if not request.content or not request.content.strip():
        raise NotificationValidationError("Content is required")
    try:
        NotificationType(request.notification_type)
    except ValueError as exc:
        raise NotificationValidationError(
            f"Invalid notification type: {request.notification_type}"
        ) from exc
    if not request.event_type or not request.event_type.strip():
        raise NotificationValidationError("Event type is required")
    if (
        request.scheduled_at is not None
        and request.expires_at is not None
        and request.expires_at <= request.scheduled_at
    ):
        raise NotificationValidationError("Expiry must be after the scheduled time")
    return request


async def create_notification(
    session: Session,
    request: NotificationRequest,
    actor_id: int,
    *,
    dispatcher: Dispatcher | None = None,
) -> list[int]:
    """Deliver ``request`` immediately and return the in-app record ids."""

    validate_request(request)
    fanout = NotificationFanout(session, dispatcher=dispatcher)
    report = await fanout.dispatch(request, actor_id=actor_id, require_recipients=True)
    return report.in_app_ids


def schedule_notification(
    session: Session, request: NotificationRequest, actor_id: int
) -> int:
    """Store ``request`` for delivery at its ``scheduled_at`` time."""

    validate_request(request)
    if request.scheduled_at is None:
        raise NotificationValidationError(
            "Scheduled date is required for scheduled notifications"
        )
    scheduled = ScheduledNotificationRepository(session).create(
        ScheduledNotification(id=None, request=request, created_by=actor_id)
    )
    logger.info(
        "Notification %s scheduled for %s by user %s",
        scheduled.id,
        request.scheduled_at.isoformat(),
        actor_id,
    )
    return scheduled.id


def cancel_scheduled_notification(session: Session, scheduled_id: int) -> None:
    """Cancel a notification that has not been picked up yet."""

    repository = ScheduledNotificationRepository(session)
    if repository.cancel(scheduled_id):
        logger.info("Scheduled notification %s cancelled", scheduled_id)
        return
    current = repository.get(scheduled_id)
    if current is None:
        raise NotFoundError(f"Scheduled notification {scheduled_id} not found")
    raise InvalidStateTransitionError(
        scheduled_id, current.status.value, ScheduledStatus.CANCELLED.value
    )


def list_scheduled_notifications(
    session: Session, *, page: int = 1, limit: int = 20
) -> tuple[Sequence[ScheduledNotification], int]:
    """Return one page of scheduled notifications and the total count."""

    if page < 1:
        raise NotificationValidationError("Page must be greater than zero")
    if limit < 1 or limit > MAX_PAGE_SIZE:
        raise NotificationValidationError(f"Limit must be between 1 and {MAX_PAGE_SIZE}")
    return ScheduledNotificationRepository(session).list(page=page, limit=limit)


def track_notification_action(
    session: Session,
    notification_id: int,
    user_id: int,
    action: AnalyticsAction | str,
    *,
    action_url: str | None = None,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> bool:
    """Log an engagement ``action`` performed by ``user_id`` on a notification."""

    try:
        action = AnalyticsAction(action)
    except ValueError as exc:
        raise NotificationValidationError(f"Invalid analytics action: {action}") from exc

    notification = InAppNotificationRepository(session).get(notification_id)
    if notification is None or notification.user_id != user_id:
        raise NotFoundError(f"Notification {notification_id} not found")

    return record_event(
        session,
        user_id=user_id,
        event_type=notification.event_type,
        action=action,
        notification_id=notification_id,
        scheduled_notification_id=notification.scheduled_notification_id,
        action_url=action_url,
        user_agent=user_agent,
        ip_address=ip_address,
    )


__all__ = [
    "validate_request",
    "create_notification",
    "schedule_notification",
    "cancel_scheduled_notification",
    "list_scheduled_notifications",
    "track_notification_action",
]
