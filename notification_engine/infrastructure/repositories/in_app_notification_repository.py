"""Persistence helpers for in-app notification records."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Iterable

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session

from notification_engine.domain.entities import (
    InAppNotification,
    NotificationCategory,
    NotificationPriority,
    NotificationType,
)
from notification_engine.infrastructure.models import InAppNotificationModel
from notification_engine.utils import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    now_in_app_timezone,
)


class InAppNotificationRepository:
    """Provide inbox operations for :class:`InAppNotification` objects."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, notification_id: int) -> InAppNotification | None:
        model = self.session.get(InAppNotificationModel, notification_id)
        return self._to_entity(model) if model else None

    def get_for_user(self, notification_id: int, user_id: int) -> InAppNotification | None:
        """Return the notification when it belongs to ``user_id`` and has not expired."""

        model = (
            self._visible_for_user(user_id)
            .filter(InAppNotificationModel.id == notification_id)
            .first()
        )
        return self._to_entity(model) if model else None

    def create_many(
        self, notifications: Iterable[InAppNotification]
    ) -> list[InAppNotification]:
        """Insert ``notifications`` in a single transaction."""

        models = []
        for notification in notifications:
            model = InAppNotificationModel()
            self._apply_entity_to_model(model, notification)
            models.append(model)
        if not models:
            return []
        self.session.add_all(models)
        self.session.commit()
        for model in models:
            self.session.refresh(model)
        return [self._to_entity(model) for model in models]

    def list_for_user(
        self,
        user_id: int,
        *,
        unread_only: bool = False,
        limit: int | None = 50,
        offset: int = 0,
    ) -> Sequence[InAppNotification]:
        query = self._visible_for_user(user_id)
        if unread_only:
            query = query.filter(InAppNotificationModel.is_read.is_(False))
        query = query.order_by(
            InAppNotificationModel.created_at.desc(), InAppNotificationModel.id.desc()
        )
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return [self._to_entity(model) for model in query.all()]

    def list_for_scheduled(self, scheduled_id: int) -> Sequence[InAppNotification]:
        query = self.session.query(InAppNotificationModel).filter(
            InAppNotificationModel.scheduled_notification_id == scheduled_id
        )
        return [self._to_entity(model) for model in query.all()]

    def count_unread(self, user_id: int) -> int:
        return (
            self._visible_for_user(user_id)
            .filter(InAppNotificationModel.is_read.is_(False))
            .count()
        )

    def mark_as_read(
        self, notification_ids: Iterable[int] | None, *, user_id: int
    ) -> list[InAppNotification]:
        """Flag unread records as read and return the ones that changed.

        ``None`` marks every unread notification of the user.
        """

        query = self.session.query(InAppNotificationModel).filter(
            InAppNotificationModel.user_id == user_id,
            InAppNotificationModel.is_read.is_(False),
        )
        if notification_ids is not None:
            ids = [notification_id for notification_id in notification_ids if notification_id is not None]
            if not ids:
                return []
            query = query.filter(InAppNotificationModel.id.in_(ids))

        models = query.all()
        if not models:
            return []
        read_at = ensure_app_naive_datetime(now_in_app_timezone())
        for model in models:
            model.is_read = True
            model.read_at = read_at
        self.session.commit()
        return [self._to_entity(model) for model in models]

    def delete(self, notification_id: int, *, user_id: int) -> bool:
        deleted = (
            self.session.query(InAppNotificationModel)
            .filter(
                InAppNotificationModel.id == notification_id,
                InAppNotificationModel.user_id == user_id,
            )
            .delete(synchronize_session=False)
        )
        self.session.commit()
        return deleted > 0

    def delete_all_for_user(self, user_id: int) -> int:
        deleted = (
            self.session.query(InAppNotificationModel)
            .filter(InAppNotificationModel.user_id == user_id)
            .delete(synchronize_session=False)
        )
        self.session.commit()
        return deleted

    def delete_expired(self, now: datetime) -> int:
        deleted = (
            self.session.query(InAppNotificationModel)
            .filter(InAppNotificationModel.expires_at.is_not(None))
            .filter(InAppNotificationModel.expires_at < ensure_app_naive_datetime(now))
            .delete(synchronize_session=False)
        )
        self.session.commit()
        return deleted

    def _visible_for_user(self, user_id: int) -> Query:
        now = ensure_app_naive_datetime(now_in_app_timezone())
        return (
            self.session.query(InAppNotificationModel)
            .filter(InAppNotificationModel.user_id == user_id)
            .filter(
                or_(
                    InAppNotificationModel.expires_at.is_(None),
                    InAppNotificationModel.expires_at > now,
                )
            )
        )

    @staticmethod
    def _apply_entity_to_model(
        model: InAppNotificationModel, notification: InAppNotification
    ) -> None:
        model.user_id = notification.user_id
        model.title = notification.title
        model.content = notification.content
        model.event_type = notification.event_type
        model.notification_type = NotificationType(notification.notification_type).value
        model.priority = NotificationPriority(notification.priority).value
        model.category = NotificationCategory(notification.category).value
        model.is_read = notification.is_read
        model.read_at = ensure_app_naive_datetime(notification.read_at)
        model.action_url = notification.action_url
        model.metadata_ = dict(notification.metadata or {})
        model.expires_at = ensure_app_naive_datetime(notification.expires_at)
        model.created_by = notification.created_by
        model.created_at = (
            ensure_app_naive_datetime(notification.created_at)
            or ensure_app_naive_datetime(now_in_app_timezone())
        )
        model.scheduled_notification_id = notification.scheduled_notification_id

    @staticmethod
    def _to_entity(model: InAppNotificationModel) -> InAppNotification:
        return InAppNotification(
            id=model.id,
            user_id=model.user_id,
            title=model.title,
            content=model.content,
            event_type=model.event_type,
            notification_type=NotificationType(model.notification_type),
            priority=NotificationPriority(model.priority),
            category=NotificationCategory(model.category),
            is_read=bool(model.is_read),
            read_at=ensure_app_timezone(model.read_at),
            action_url=model.action_url,
            metadata=model.metadata_ or {},
            expires_at=ensure_app_timezone(model.expires_at),
            created_by=model.created_by,
            created_at=ensure_app_timezone(model.created_at),
            scheduled_notification_id=model.scheduled_notification_id,
        )


__all__ = ["InAppNotificationRepository"]
