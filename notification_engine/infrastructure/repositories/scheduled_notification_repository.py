"""Persistence helpers for scheduled notifications."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from notification_engine.domain.entities import (
    NotificationRequest,
    NotificationType,
    ScheduledNotification,
    ScheduledStatus,
    audience_roles,
    audience_user_ids,
    build_audience,
)
from notification_engine.infrastructure.models import ScheduledNotificationModel
from notification_engine.utils import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    now_in_app_naive_datetime,
)


class ScheduledNotificationRepository:
    """Store scheduled notifications and move them through their lifecycle.

    Every status change is a conditional update on the expected prior status,
    so two callers can never both win the same transition.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, scheduled_id: int) -> ScheduledNotification | None:
        model = self.session.get(ScheduledNotificationModel, scheduled_id)
        return self._to_entity(model) if model else None

    def list(self, *, page: int = 1, limit: int = 20) -> tuple[Sequence[ScheduledNotification], int]:
        query = self.session.query(ScheduledNotificationModel)
        total = query.count()
        models = (
            query.order_by(
                ScheduledNotificationModel.scheduled_at.desc(),
                ScheduledNotificationModel.id.desc(),
            )
            .offset(max(page - 1, 0) * limit)
            .limit(limit)
            .all()
        )
        return [self._to_entity(model) for model in models], total

    def list_due(self, now: datetime) -> Sequence[ScheduledNotification]:
        query = (
            self.session.query(ScheduledNotificationModel)
            .filter(ScheduledNotificationModel.status == ScheduledStatus.PENDING.value)
            .filter(ScheduledNotificationModel.scheduled_at <= ensure_app_naive_datetime(now))
            .order_by(ScheduledNotificationModel.scheduled_at.asc(), ScheduledNotificationModel.id.asc())
        )
        return [self._to_entity(model) for model in query.all()]

    def create(self, scheduled: ScheduledNotification) -> ScheduledNotification:
        model = ScheduledNotificationModel()
        self._apply_entity_to_model(model, scheduled)
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def claim(self, scheduled_id: int) -> bool:
        """Move a pending row to ``processing``; ``False`` when another caller won."""

        return self._transition(
            scheduled_id, ScheduledStatus.PENDING, ScheduledStatus.PROCESSING
        )

    def cancel(self, scheduled_id: int) -> bool:
        return self._transition(
            scheduled_id, ScheduledStatus.PENDING, ScheduledStatus.CANCELLED
        )

    def mark_sent(self, scheduled_id: int, *, sent_count: int, sent_at: datetime) -> bool:
        return self._transition(
            scheduled_id,
            ScheduledStatus.PROCESSING,
            ScheduledStatus.SENT,
            {
                ScheduledNotificationModel.sent_count: sent_count,
                ScheduledNotificationModel.sent_at: ensure_app_naive_datetime(sent_at),
            },
        )

    def mark_failed(self, scheduled_id: int) -> bool:
        return self._transition(
            scheduled_id,
            ScheduledStatus.PROCESSING,
            ScheduledStatus.FAILED,
            {
                ScheduledNotificationModel.failure_count: ScheduledNotificationModel.failure_count + 1,
            },
        )

    def release_stale_claims(self) -> int:
        """Return rows left in ``processing`` to ``pending``."""

        updated = (
            self.session.query(ScheduledNotificationModel)
            .filter(ScheduledNotificationModel.status == ScheduledStatus.PROCESSING.value)
            .update(
                {
                    ScheduledNotificationModel.status: ScheduledStatus.PENDING.value,
                    ScheduledNotificationModel.updated_at: now_in_app_naive_datetime(),
                },
                synchronize_session=False,
            )
        )
        self.session.commit()
        return updated

    def _transition(
        self,
        scheduled_id: int,
        expected: ScheduledStatus,
        target: ScheduledStatus,
        values: dict[Any, Any] | None = None,
    ) -> bool:
        changes: dict[Any, Any] = {
            ScheduledNotificationModel.status: target.value,
            ScheduledNotificationModel.updated_at: now_in_app_naive_datetime(),
        }
        changes.update(values or {})
        updated = (
            self.session.query(ScheduledNotificationModel)
            .filter(
                ScheduledNotificationModel.id == scheduled_id,
                ScheduledNotificationModel.status == expected.value,
            )
            .update(changes, synchronize_session=False)
        )
        self.session.commit()
        return updated == 1

    @staticmethod
    def _apply_entity_to_model(
        model: ScheduledNotificationModel, scheduled: ScheduledNotification
    ) -> None:
        request = scheduled.request
        model.title = request.title
        model.content = request.content
        model.notification_type = NotificationType(request.notification_type).value
        model.event_type = request.event_type
        model.target_audience = request.audience.kind.value
        model.target_roles = audience_roles(request.audience)
        model.target_user_ids = audience_user_ids(request.audience)
        model.scheduled_at = ensure_app_naive_datetime(request.scheduled_at)
        model.expires_at = ensure_app_naive_datetime(request.expires_at)
        model.action_url = request.action_url
        model.metadata_ = dict(request.metadata or {})
        model.status = ScheduledStatus(scheduled.status).value
        model.sent_count = scheduled.sent_count
        model.failure_count = scheduled.failure_count
        model.sent_at = ensure_app_naive_datetime(scheduled.sent_at)
        model.created_by = scheduled.created_by
        model.created_at = (
            ensure_app_naive_datetime(scheduled.created_at) or now_in_app_naive_datetime()
        )

    @staticmethod
    def _to_entity(model: ScheduledNotificationModel) -> ScheduledNotification:
        request = NotificationRequest(
            title=model.title,
            content=model.content,
            notification_type=NotificationType(model.notification_type),
            audience=build_audience(
                model.target_audience,
                roles=model.target_roles,
                user_ids=model.target_user_ids,
            ),
            event_type=model.event_type,
            scheduled_at=ensure_app_timezone(model.scheduled_at),
            expires_at=ensure_app_timezone(model.expires_at),
            action_url=model.action_url,
            metadata=model.metadata_ or {},
        )
        return ScheduledNotification(
            id=model.id,
            request=request,
            status=ScheduledStatus(model.status),
            sent_count=model.sent_count or 0,
            failure_count=model.failure_count or 0,
            sent_at=ensure_app_timezone(model.sent_at),
            created_by=model.created_by,
            created_at=ensure_app_timezone(model.created_at),
            updated_at=ensure_app_timezone(model.updated_at),
        )


__all__ = ["ScheduledNotificationRepository"]
