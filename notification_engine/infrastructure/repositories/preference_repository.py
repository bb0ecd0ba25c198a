"""Persistence helpers for notification preferences."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Iterable

from sqlalchemy.orm import Session

from notification_engine.domain.entities import (
    NotificationChannel,
    NotificationPreference,
    PreferenceUpdate,
)
from notification_engine.infrastructure.models import NotificationPreferenceModel
from notification_engine.utils import ensure_app_timezone, now_in_app_naive_datetime


class PreferenceRepository:
    """Provide CRUD operations for explicit :class:`NotificationPreference` rows."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(
        self, user_id: int, channel: NotificationChannel, event_type: str
    ) -> NotificationPreference | None:
        model = self._get_model(user_id, channel, event_type)
        return self._to_entity(model) if model else None

    def list_for_user(self, user_id: int) -> Sequence[NotificationPreference]:
        query = (
            self.session.query(NotificationPreferenceModel)
            .filter(NotificationPreferenceModel.user_id == user_id)
            .order_by(
                NotificationPreferenceModel.channel.asc(),
                NotificationPreferenceModel.event_type.asc(),
            )
        )
        return [self._to_entity(model) for model in query.all()]

    def list_for_channel_event(
        self, channel: NotificationChannel, event_type: str
    ) -> Sequence[NotificationPreference]:
        query = self.session.query(NotificationPreferenceModel).filter(
            NotificationPreferenceModel.channel == NotificationChannel(channel).value,
            NotificationPreferenceModel.event_type == event_type,
        )
        return [self._to_entity(model) for model in query.all()]

    def upsert_many(
        self, user_id: int, updates: Iterable[PreferenceUpdate]
    ) -> list[NotificationPreference]:
        """Insert or update one row per update in a single transaction."""

        touched: dict[tuple[str, str], NotificationPreferenceModel] = {}
        now = now_in_app_naive_datetime()
        for update in updates:
            channel = NotificationChannel(update.channel)
            key = (channel.value, update.event_type)
            model = touched.get(key) or self._get_model(user_id, channel, update.event_type)
            if model is None:
                model = NotificationPreferenceModel(
                    user_id=user_id,
                    channel=channel.value,
                    event_type=update.event_type,
                    created_at=now,
                )
                self.session.add(model)
            model.enabled = bool(update.enabled)
            model.updated_at = now
            touched[key] = model
        if not touched:
            return []
        self.session.commit()
        for model in touched.values():
            self.session.refresh(model)
        return [self._to_entity(model) for model in touched.values()]

    def delete_for_user(self, user_id: int) -> int:
        deleted = (
            self.session.query(NotificationPreferenceModel)
            .filter(NotificationPreferenceModel.user_id == user_id)
            .delete(synchronize_session=False)
        )
        self.session.commit()
        return deleted

    def _get_model(
        self, user_id: int, channel: NotificationChannel, event_type: str
    ) -> NotificationPreferenceModel | None:
        return (
            self.session.query(NotificationPreferenceModel)
            .filter(
                NotificationPreferenceModel.user_id == user_id,
                NotificationPreferenceModel.channel == NotificationChannel(channel).value,
                NotificationPreferenceModel.event_type == event_type,
            )
            .first()
        )

    @staticmethod
    def _to_entity(model: NotificationPreferenceModel) -> NotificationPreference:
        return NotificationPreference(
            id=model.id,
            user_id=model.user_id,
            channel=NotificationChannel(model.channel),
            event_type=model.event_type,
            enabled=bool(model.enabled),
            created_at=ensure_app_timezone(model.created_at),
            updated_at=ensure_app_timezone(model.updated_at),
        )


__all__ = ["PreferenceRepository"]
