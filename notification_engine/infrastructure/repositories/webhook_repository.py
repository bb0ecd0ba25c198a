"""Persistence helpers for webhook configurations."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy.orm import Session

from notification_engine.domain.entities import (
    AuthType,
    ContentType,
    HttpMethod,
    WebhookConfiguration,
    WebhookCredentials,
)
from notification_engine.infrastructure.models import WebhookConfigurationModel
from notification_engine.utils import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    now_in_app_naive_datetime,
)


class WebhookRepository:
    """Provide CRUD operations and delivery counters for webhooks."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def list(self) -> Sequence[WebhookConfiguration]:
        query = self.session.query(WebhookConfigurationModel).order_by(
            WebhookConfigurationModel.created_at.desc(), WebhookConfigurationModel.id.desc()
        )
        return [self._to_entity(model) for model in query.all()]

    def list_for_event(self, event_type: str) -> Sequence[WebhookConfiguration]:
        """Return enabled configurations subscribed to ``event_type``."""

        query = (
            self.session.query(WebhookConfigurationModel)
            .filter(WebhookConfigurationModel.is_enabled.is_(True))
            .order_by(WebhookConfigurationModel.id.asc())
        )
        # enabled_events is a JSON list; filtering it in SQL is not portable.
        entities = (self._to_entity(model) for model in query.all())
        return [entity for entity in entities if entity.subscribes_to(event_type)]

    def get(self, webhook_id: int) -> WebhookConfiguration | None:
        model = self.session.get(WebhookConfigurationModel, webhook_id)
        return self._to_entity(model) if model else None

    def create(self, webhook: WebhookConfiguration) -> WebhookConfiguration:
        model = WebhookConfigurationModel()
        self._apply_entity_to_model(model, webhook, include_creation_fields=True)
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def update(self, webhook: WebhookConfiguration) -> WebhookConfiguration:
        if webhook.id is None:
            raise ValueError("Webhook id is required for updates")
        model = self.session.get(WebhookConfigurationModel, webhook.id)
        if model is None:
            msg = f"Webhook with id {webhook.id} not found"
            raise ValueError(msg)
        self._apply_entity_to_model(model, webhook, include_creation_fields=False)
        model.updated_at = now_in_app_naive_datetime()
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def delete(self, webhook_id: int) -> bool:
        deleted = (
            self.session.query(WebhookConfigurationModel)
            .filter(WebhookConfigurationModel.id == webhook_id)
            .delete(synchronize_session=False)
        )
        self.session.commit()
        return deleted > 0

    def record_delivery_result(
        self, webhook_id: int, *, success: bool, triggered_at: datetime
    ) -> None:
        """Atomically bump the success or failure counter of a webhook."""

        counter = (
            WebhookConfigurationModel.success_count
            if success
            else WebhookConfigurationModel.failure_count
        )
        now = ensure_app_naive_datetime(triggered_at)
        self.session.query(WebhookConfigurationModel).filter(
            WebhookConfigurationModel.id == webhook_id
        ).update(
            {
                counter: counter + 1,
                WebhookConfigurationModel.last_triggered_at: now,
                WebhookConfigurationModel.updated_at: now,
            },
            synchronize_session=False,
        )
        self.session.commit()

    @staticmethod
    def _apply_entity_to_model(
        model: WebhookConfigurationModel,
        webhook: WebhookConfiguration,
        *,
        include_creation_fields: bool,
    ) -> None:
        if include_creation_fields:
            model.created_by = webhook.created_by
            model.created_at = (
                ensure_app_naive_datetime(webhook.created_at) or now_in_app_naive_datetime()
            )
            model.success_count = webhook.success_count
            model.failure_count = webhook.failure_count
            model.last_triggered_at = ensure_app_naive_datetime(webhook.last_triggered_at)
        credentials = webhook.credentials or WebhookCredentials()
        auth_type = webhook.auth_type
        model.name = webhook.name
        model.description = webhook.description
        model.url = webhook.url
        model.method = HttpMethod(webhook.method).value
        model.content_type = ContentType(webhook.content_type).value
        model.auth_type = auth_type.value if isinstance(auth_type, AuthType) else str(auth_type)
        model.auth_token = credentials.token
        model.auth_username = credentials.username
        model.auth_password = credentials.password
        model.auth_header_name = credentials.header_name
        model.secret = webhook.secret
        model.timeout = webhook.timeout
        model.retry_attempts = webhook.retry_attempts
        model.retry_delay = webhook.retry_delay
        model.enabled_events = list(webhook.enabled_events or [])
        model.custom_headers = dict(webhook.custom_headers or {})
        model.payload_template = webhook.payload_template
        model.is_enabled = webhook.is_enabled

    @staticmethod
    def _to_entity(model: WebhookConfigurationModel) -> WebhookConfiguration:
        try:
            auth_type: AuthType | str = AuthType(model.auth_type)
        except ValueError:
            auth_type = model.auth_type
        return WebhookConfiguration(
            id=model.id,
            name=model.name,
            description=model.description,
            url=model.url,
            method=HttpMethod(model.method),
            content_type=ContentType(model.content_type),
            auth_type=auth_type,
            credentials=WebhookCredentials(
                token=model.auth_token,
                username=model.auth_username,
                password=model.auth_password,
                header_name=model.auth_header_name,
            ),
            secret=model.secret,
            timeout=model.timeout,
            retry_attempts=model.retry_attempts,
            retry_delay=model.retry_delay,
            enabled_events=list(model.enabled_events or []),
            custom_headers=dict(model.custom_headers or {}),
            payload_template=model.payload_template,
            is_enabled=bool(model.is_enabled),
            success_count=model.success_count or 0,
            failure_count=model.failure_count or 0,
            last_triggered_at=ensure_app_timezone(model.last_triggered_at),
            created_by=model.created_by,
            created_at=ensure_app_timezone(model.created_at),
            updated_at=ensure_app_timezone(model.updated_at),
        )


__all__ = ["WebhookRepository"]
