"""Routes letting administrators send, schedule and analyse notifications."""

from __future__ import annotations

import math
from datetime import datetime

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.orm import Session

from notification_engine.application.use_cases import analytics as analytics_uc
from notification_engine.application.use_cases.notifications import (
    cancel_scheduled_notification as cancel_scheduled_notification_uc,
    create_notification as create_notification_uc,
    create_template as create_template_uc,
    list_scheduled_notifications as list_scheduled_notifications_uc,
    list_templates as list_templates_uc,
    process_scheduled_notifications as process_scheduled_notifications_uc,
    schedule_notification as schedule_notification_uc,
)
from notification_engine.domain.entities import (
    NotificationRequest,
    NotificationTemplate,
    ScheduledNotification,
    User,
    audience_roles,
    audience_user_ids,
    build_audience,
)
from notification_engine.domain.errors import NotificationError
from notification_engine.infrastructure.database import get_db
from notification_engine.interfaces.api.dependencies import require_admin
from notification_engine.interfaces.api.routes_helpers import to_http_exception
from notification_engine.interfaces.api.schemas import (
    JobStatusRead,
    NotificationAnalyticsRead,
    NotificationCreate,
    NotificationCreateResponse,
    NotificationTemplateCreate,
    NotificationTemplatePage,
    NotificationTemplateRead,
    ScheduledNotificationCreateResponse,
    ScheduledNotificationPage,
    ScheduledNotificationRead,
    SchedulerRunRead,
)

router = APIRouter(prefix="/admin/notifications", tags=["admin-notifications"])


def _to_request(payload: NotificationCreate) -> NotificationRequest:
    return NotificationRequest(
        title=payload.title.strip(),
        content=payload.content,
        notification_type=payload.notification_type,
        audience=build_audience(
            payload.target_audience,
            roles=payload.target_roles,
            user_ids=payload.target_user_ids,
        ),
        event_type=payload.event_type.strip(),
        scheduled_at=payload.scheduled_at,
        expires_at=payload.expires_at,
        action_url=payload.action_url,
        metadata=payload.metadata,
    )


def _scheduled_to_schema(scheduled: ScheduledNotification) -> ScheduledNotificationRead:
    request = scheduled.request
    return ScheduledNotificationRead(
        id=scheduled.id or 0,
        title=request.title,
        content=request.content,
        notification_type=request.notification_type,
        event_type=request.event_type,
        target_audience=request.audience.kind,
        target_roles=audience_roles(request.audience),
        target_user_ids=audience_user_ids(request.audience),
        scheduled_at=request.scheduled_at,
        expires_at=request.expires_at,
        action_url=request.action_url,
        metadata=request.metadata,
        status=scheduled.status,
        sent_count=scheduled.sent_count,
        failure_count=scheduled.failure_count,
        sent_at=scheduled.sent_at,
        created_by=scheduled.created_by,
        created_at=scheduled.created_at,
        updated_at=scheduled.updated_at,
    )


@router.post("/", response_model=NotificationCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_notification(
    payload: NotificationCreate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(require_admin),
) -> NotificationCreateResponse:
    """Send a notification now to the selected audience."""

    try:
        notification_ids = await create_notification_uc(
            db, _to_request(payload), current_admin.id
        )
    except NotificationError as exc:
        raise to_http_exception(exc) from exc
    return NotificationCreateResponse(
        notification_ids=notification_ids, count=len(notification_ids)
    )


@router.post(
    "/schedule",
    response_model=ScheduledNotificationCreateResponse,
    status_code=status.HTTP_201_CREATED,
)
def schedule_notification(
    payload: NotificationCreate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(require_admin),
) -> ScheduledNotificationCreateResponse:
    """Store a notification for delivery at ``scheduled_at``."""

    try:
        scheduled_id = schedule_notification_uc(db, _to_request(payload), current_admin.id)
    except NotificationError as exc:
        raise to_http_exception(exc) from exc
    return ScheduledNotificationCreateResponse(id=scheduled_id)


@router.get("/scheduled", response_model=ScheduledNotificationPage)
def list_scheduled_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_admin: User = Depends(require_admin),
) -> ScheduledNotificationPage:
    try:
        items, total = list_scheduled_notifications_uc(db, page=page, limit=limit)
    except NotificationError as exc:
        raise to_http_exception(exc) from exc
    return ScheduledNotificationPage(
        items=[_scheduled_to_schema(item) for item in items],
        total=total,
        page=page,
        limit=limit,
    )


@router.delete("/scheduled/{scheduled_id}", status_code=status.HTTP_204_NO_CONTENT)
def cancel_scheduled_notification(
    scheduled_id: int,
    db: Session = Depends(get_db),
    current_admin: User = Depends(require_admin),
) -> Response:
    """Cancel a scheduled notification that is still pending."""

    try:
        cancel_scheduled_notification_uc(db, scheduled_id)
    except NotificationError as exc:
        raise to_http_exception(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/process-scheduled", response_model=SchedulerRunRead)
async def process_scheduled_notifications(
    current_admin: User = Depends(require_admin),
) -> SchedulerRunRead:
    """Deliver every due scheduled notification right away."""

    report = await process_scheduled_notifications_uc()
    return SchedulerRunRead.model_validate(report)


@router.post(
    "/templates",
    response_model=NotificationTemplateRead,
    status_code=status.HTTP_201_CREATED,
)
def create_template(
    payload: NotificationTemplateCreate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(require_admin),
) -> NotificationTemplateRead:
    """Store reusable notification content."""

    try:
        template = create_template_uc(
            db, NotificationTemplate(id=None, **payload.model_dump()), current_admin.id
        )
    except NotificationError as exc:
        raise to_http_exception(exc) from exc
    return NotificationTemplateRead.model_validate(template)


@router.get("/templates", response_model=NotificationTemplatePage)
def list_templates(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_admin: User = Depends(require_admin),
) -> NotificationTemplatePage:
    try:
        items, total = list_templates_uc(db, page=page, limit=limit)
    except NotificationError as exc:
        raise to_http_exception(exc) from exc
    return NotificationTemplatePage(
        items=[NotificationTemplateRead.model_validate(item) for item in items],
        total=total,
        page=page,
        limit=limit,
        total_pages=math.ceil(total / limit),
    )


@router.get("/analytics", response_model=NotificationAnalyticsRead)
def get_notification_analytics(
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    event_type: str | None = None,
    db: Session = Depends(get_db),
    current_admin: User = Depends(require_admin),
) -> NotificationAnalyticsRead:
    try:
        summary = analytics_uc.get_notification_analytics(
            db, start=start_date, end=end_date, event_type=event_type
        )
    except NotificationError as exc:
        raise to_http_exception(exc) from exc
    return NotificationAnalyticsRead.model_validate(summary)


@router.get("/jobs", response_model=list[JobStatusRead])
def list_jobs(
    request: Request,
    current_admin: User = Depends(require_admin),
) -> list[JobStatusRead]:
    """Report the state of the background notification jobs."""

    runner = getattr(request.app.state, "job_runner", None)
    if runner is None:
        return []
    return [JobStatusRead(**job) for job in runner.status()]
