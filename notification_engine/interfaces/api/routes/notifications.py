"""Endpoints for the authenticated user's inbox and notification preferences."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.orm import Session

from notification_engine.application.use_cases import inbox as inbox_uc
from notification_engine.application.use_cases import preferences as preferences_uc
from notification_engine.application.use_cases.notifications import (
    track_notification_action as track_notification_action_uc,
)
from notification_engine.domain.entities import InAppNotification, PreferenceUpdate, User
from notification_engine.domain.errors import NotificationError
from notification_engine.infrastructure.database import get_db
from notification_engine.interfaces.api.dependencies import get_current_active_user
from notification_engine.interfaces.api.routes_helpers import to_http_exception
from notification_engine.interfaces.api.schemas import (
    AffectedCountRead,
    InAppNotificationRead,
    NotificationTrackRequest,
    PreferenceBatchUpdateRequest,
    PreferenceItem,
    PreferenceOverviewRead,
    PreferenceSetAllRequest,
    PreferenceSummaryRead,
    PreferenceUpdateRequest,
    UnreadCountRead,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])


def _notification_to_schema(notification: InAppNotification) -> InAppNotificationRead:
    return InAppNotificationRead(
        id=notification.id or 0,
        user_id=notification.user_id,
        title=notification.title,
        content=notification.content,
        event_type=notification.event_type,
        notification_type=notification.notification_type,
        priority=notification.priority,
        category=notification.category,
        is_read=notification.is_read,
        read_at=notification.read_at,
        action_url=notification.action_url,
        metadata=notification.metadata or {},
        expires_at=notification.expires_at,
        created_at=notification.created_at,
    )


def _overview_to_schema(db: Session, user_id: int) -> PreferenceOverviewRead:
    overview = preferences_uc.get_preferences(db, user_id)
    return PreferenceOverviewRead(
        user_id=overview.user_id,
        matrix=overview.matrix,
        explicit=[
            PreferenceItem(channel=row.channel, event_type=row.event_type, enabled=row.enabled)
            for row in overview.explicit
        ],
    )


@router.get("/", response_model=list[InAppNotificationRead])
def list_notifications(
    unread_only: bool = False,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> list[InAppNotificationRead]:
    """Return the most recent notifications for the authenticated user."""

    notifications = inbox_uc.list_notifications(
        db, current_user.id, unread_only=unread_only, limit=limit, offset=offset
    )
    return [_notification_to_schema(notification) for notification in notifications]


@router.get("/unread-count", response_model=UnreadCountRead)
def get_unread_count(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> UnreadCountRead:
    return UnreadCountRead(count=inbox_uc.unread_count(db, current_user.id))


@router.post("/read-all", response_model=AffectedCountRead)
def mark_all_notifications_read(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> AffectedCountRead:
    return AffectedCountRead(count=inbox_uc.mark_all_read(db, current_user.id))


@router.delete("/", response_model=AffectedCountRead)
def clear_notifications(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> AffectedCountRead:
    return AffectedCountRead(count=inbox_uc.clear_notifications(db, current_user.id))


@router.get("/preferences", response_model=PreferenceOverviewRead)
def get_preferences(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> PreferenceOverviewRead:
    return _overview_to_schema(db, current_user.id)


@router.put("/preferences", response_model=PreferenceOverviewRead)
def update_preferences(
    payload: PreferenceUpdateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> PreferenceOverviewRead:
    updates = [
        PreferenceUpdate(channel=item.channel, event_type=item.event_type, enabled=item.enabled)
        for item in payload.preferences
    ]
    try:
        preferences_uc.update_preferences(db, current_user.id, updates)
    except NotificationError as exc:
        raise to_http_exception(exc) from exc
    return _overview_to_schema(db, current_user.id)


@router.put("/preferences/batch", response_model=PreferenceOverviewRead)
def batch_update_preferences(
    payload: PreferenceBatchUpdateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> PreferenceOverviewRead:
    try:
        preferences_uc.batch_update_preferences(
            db, current_user.id, payload.channel, payload.preferences
        )
    except NotificationError as exc:
        raise to_http_exception(exc) from exc
    return _overview_to_schema(db, current_user.id)


@router.put("/preferences/all", response_model=PreferenceOverviewRead)
def set_all_preferences(
    payload: PreferenceSetAllRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> PreferenceOverviewRead:
    preferences_uc.set_all_preferences(db, current_user.id, payload.enabled)
    return _overview_to_schema(db, current_user.id)


@router.delete("/preferences", response_model=PreferenceOverviewRead)
def reset_preferences(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> PreferenceOverviewRead:
    """Drop explicit preferences so the defaults apply again."""

    preferences_uc.reset_preferences(db, current_user.id)
    return _overview_to_schema(db, current_user.id)


@router.get("/preferences/summary", response_model=PreferenceSummaryRead)
def get_preference_summary(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> PreferenceSummaryRead:
    return PreferenceSummaryRead(
        channels=preferences_uc.preference_summary(db, current_user.id)
    )


@router.get("/{notification_id}", response_model=InAppNotificationRead)
def get_notification(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> InAppNotificationRead:
    try:
        notification = inbox_uc.get_notification(db, current_user.id, notification_id)
    except NotificationError as exc:
        raise to_http_exception(exc) from exc
    return _notification_to_schema(notification)


@router.post("/{notification_id}/read", response_model=InAppNotificationRead)
def mark_notification_read(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> InAppNotificationRead:
    try:
        notification = inbox_uc.mark_read(db, current_user.id, notification_id)
    except NotificationError as exc:
        raise to_http_exception(exc) from exc
    return _notification_to_schema(notification)


@router.post("/{notification_id}/track", status_code=status.HTTP_204_NO_CONTENT)
def track_notification_action(
    notification_id: int,
    payload: NotificationTrackRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Response:
    """Record an engagement action such as ``clicked`` or ``dismissed``."""

    try:
        track_notification_action_uc(
            db,
            notification_id,
            current_user.id,
            payload.action,
            action_url=payload.action_url,
            user_agent=request.headers.get("user-agent"),
            ip_address=request.client.host if request.client else None,
        )
    except NotificationError as exc:
        raise to_http_exception(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_notification(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Response:
    try:
        inbox_uc.delete_notification(db, current_user.id, notification_id)
    except NotificationError as exc:
        raise to_http_exception(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
