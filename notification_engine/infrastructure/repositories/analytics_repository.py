"""Persistence helpers for notification analytics events."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from sqlalchemy import func
from sqlalchemy.orm import Session

from notification_engine.domain.entities import AnalyticsAction, NotificationAnalyticsEvent
from notification_engine.infrastructure.models import NotificationAnalyticsModel
from notification_engine.utils import ensure_app_naive_datetime, now_in_app_naive_datetime


class AnalyticsRepository:
    """Append analytics events and aggregate them per action."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def add_many(self, events: Iterable[NotificationAnalyticsEvent]) -> int:
        models = [self._to_model(event) for event in events]
        if not models:
            return 0
        self.session.add_all(models)
        self.session.commit()
        return len(models)

    def count_by_action(
        self,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
        event_type: str | None = None,
    ) -> dict[str, int]:
        query = self.session.query(
            NotificationAnalyticsModel.action, func.count(NotificationAnalyticsModel.id)
        )
        if start is not None:
            query = query.filter(
                NotificationAnalyticsModel.timestamp >= ensure_app_naive_datetime(start)
            )
        if end is not None:
            query = query.filter(
                NotificationAnalyticsModel.timestamp <= ensure_app_naive_datetime(end)
            )
        if event_type:
            query = query.filter(NotificationAnalyticsModel.event_type == event_type)
        rows = query.group_by(NotificationAnalyticsModel.action).all()
        return {action: int(count) for action, count in rows}

    @staticmethod
    def _to_model(event: NotificationAnalyticsEvent) -> NotificationAnalyticsModel:
        return NotificationAnalyticsModel(
            notification_id=event.notification_id,
            scheduled_notification_id=event.scheduled_notification_id,
            user_id=event.user_id,
            event_type=event.event_type,
            action=AnalyticsAction(event.action).value,
            action_url=event.action_url,
            user_agent=event.user_agent,
            ip_address=event.ip_address,
            timestamp=ensure_app_naive_datetime(event.timestamp) or now_in_app_naive_datetime(),
        )


__all__ = ["AnalyticsRepository"]
