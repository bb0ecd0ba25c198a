"""Persistence helpers for notification templates."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy.orm import Session

from notification_engine.domain.entities import (
    NotificationCategory,
    NotificationTemplate,
    NotificationType,
)
from notification_engine.infrastructure.models import NotificationTemplateModel
from notification_engine.utils import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    now_in_app_naive_datetime,
)


class NotificationTemplateRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, template_id: int) -> NotificationTemplate | None:
        model = self.session.get(NotificationTemplateModel, template_id)
        return self._to_entity(model) if model else None

    def list_active(
        self, *, page: int = 1, limit: int = 20
    ) -> tuple[Sequence[NotificationTemplate], int]:
        """Return one page of active templates, newest first, and their total."""

        query = self.session.query(NotificationTemplateModel).filter(
            NotificationTemplateModel.is_active.is_(True)
        )
        total = query.count()
        models = (
            query.order_by(
                NotificationTemplateModel.created_at.desc(),
                NotificationTemplateModel.id.desc(),
            )
            .offset(max(page - 1, 0) * limit)
            .limit(limit)
            .all()
        )
        return [self._to_entity(model) for model in models], total

    def create(self, template: NotificationTemplate) -> NotificationTemplate:
        model = NotificationTemplateModel()
        self._apply_entity_to_model(model, template)
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    @staticmethod
    def _apply_entity_to_model(
        model: NotificationTemplateModel, template: NotificationTemplate
    ) -> None:
        model.name = template.name
        model.description = template.description
        model.event_type = template.event_type
        model.title = template.title
        model.content = template.content
        model.notification_type = NotificationType(template.notification_type).value
        model.category = NotificationCategory(template.category).value
        model.variables = list(template.variables or [])
        model.is_active = template.is_active
        model.created_by = template.created_by
        model.created_at = (
            ensure_app_naive_datetime(template.created_at) or now_in_app_naive_datetime()
        )

    @staticmethod
    def _to_entity(model: NotificationTemplateModel) -> NotificationTemplate:
        return NotificationTemplate(
            id=model.id,
            name=model.name,
            description=model.description,
            event_type=model.event_type,
            title=model.title,
            content=model.content,
            notification_type=NotificationType(model.notification_type),
            category=NotificationCategory(model.category),
            variables=list(model.variables or []),
            is_active=bool(model.is_active),
            created_by=model.created_by,
            created_at=ensure_app_timezone(model.created_at),
            updated_at=ensure_app_timezone(model.updated_at),
        )


__all__ = ["NotificationTemplateRepository"]
