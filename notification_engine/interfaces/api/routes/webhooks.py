"""Routes to manage outbound webhook configurations."""

from __future__ import annotations

from dataclasses import replace

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from notification_engine.application.use_cases import webhooks as webhooks_uc
from notification_engine.domain.entities import (
    User,
    WebhookConfiguration,
    WebhookCredentials,
)
from notification_engine.domain.errors import NotificationError
from notification_engine.infrastructure.database import get_db
from notification_engine.interfaces.api.dependencies import require_admin
from notification_engine.interfaces.api.routes_helpers import to_http_exception
from notification_engine.interfaces.api.schemas import (
    WebhookCreate,
    WebhookRead,
    WebhookTestConfig,
    WebhookTestResultRead,
    WebhookUpdate,
)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])

_CREDENTIAL_FIELDS = {
    "auth_token": "token",
    "auth_username": "username",
    "auth_password": "password",
    "auth_header_name": "header_name",
}


def _webhook_to_schema(webhook: WebhookConfiguration) -> WebhookRead:
    auth_type = webhook.auth_type
    return WebhookRead(
        id=webhook.id or 0,
        name=webhook.name,
        description=webhook.description,
        url=webhook.url,
        method=webhook.method,
        content_type=webhook.content_type,
        auth_type=getattr(auth_type, "value", auth_type),
        auth_header_name=webhook.credentials.header_name,
        has_secret=bool(webhook.secret),
        timeout=webhook.timeout,
        retry_attempts=webhook.retry_attempts,
        retry_delay=webhook.retry_delay,
        enabled_events=webhook.enabled_events,
        custom_headers=webhook.custom_headers,
        payload_template=webhook.payload_template,
        is_enabled=webhook.is_enabled,
        success_count=webhook.success_count,
        failure_count=webhook.failure_count,
        last_triggered_at=webhook.last_triggered_at,
        created_by=webhook.created_by,
        created_at=webhook.created_at,
        updated_at=webhook.updated_at,
    )


def _schema_to_entity(payload: WebhookCreate) -> WebhookConfiguration:
    return WebhookConfiguration(
        id=None,
        name=payload.name,
        description=payload.description,
        url=payload.url,
        method=payload.method,
        content_type=payload.content_type,
        auth_type=payload.auth_type,
        credentials=WebhookCredentials(
            token=payload.auth_token,
            username=payload.auth_username,
            password=payload.auth_password,
            header_name=payload.auth_header_name,
        ),
        secret=payload.secret,
        timeout=payload.timeout,
        retry_attempts=payload.retry_attempts,
        retry_delay=payload.retry_delay,
        enabled_events=payload.enabled_events,
        custom_headers=payload.custom_headers,
        payload_template=payload.payload_template,
        is_enabled=payload.is_enabled,
    )


@router.get("/", response_model=list[WebhookRead])
def list_webhooks(
    db: Session = Depends(get_db),
    current_admin: User = Depends(require_admin),
) -> list[WebhookRead]:
    return [_webhook_to_schema(webhook) for webhook in webhooks_uc.list_webhooks(db)]


@router.post("/", response_model=WebhookRead, status_code=status.HTTP_201_CREATED)
def create_webhook(
    payload: WebhookCreate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(require_admin),
) -> WebhookRead:
    try:
        webhook = webhooks_uc.create_webhook(db, _schema_to_entity(payload), current_admin.id)
    except NotificationError as exc:
        raise to_http_exception(exc) from exc
    return _webhook_to_schema(webhook)


@router.post("/test-config", response_model=WebhookTestResultRead)
async def run_webhook_config_test(
    payload: WebhookTestConfig,
    current_admin: User = Depends(require_admin),
) -> WebhookTestResultRead:
    """Send a test payload to a configuration that has not been saved."""

    try:
        result = await webhooks_uc.send_webhook_config_test(
            _schema_to_entity(payload), template_id=payload.template_id
        )
    except NotificationError as exc:
        raise to_http_exception(exc) from exc
    return WebhookTestResultRead.model_validate(result)


@router.get("/{webhook_id}", response_model=WebhookRead)
def read_webhook(
    webhook_id: int,
    db: Session = Depends(get_db),
    current_admin: User = Depends(require_admin),
) -> WebhookRead:
    try:
        webhook = webhooks_uc.get_webhook(db, webhook_id)
    except NotificationError as exc:
        raise to_http_exception(exc) from exc
    return _webhook_to_schema(webhook)


@router.put("/{webhook_id}", response_model=WebhookRead)
def update_webhook(
    webhook_id: int,
    payload: WebhookUpdate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(require_admin),
) -> WebhookRead:
    changes = payload.model_dump(exclude_unset=True)
    credential_changes = {
        _CREDENTIAL_FIELDS[name]: changes.pop(name)
        for name in list(changes)
        if name in _CREDENTIAL_FIELDS
    }
    try:
        if credential_changes:
            current = webhooks_uc.get_webhook(db, webhook_id)
            changes["credentials"] = replace(current.credentials, **credential_changes)
        webhook = webhooks_uc.update_webhook(db, webhook_id, changes)
    except NotificationError as exc:
        raise to_http_exception(exc) from exc
    return _webhook_to_schema(webhook)


@router.delete("/{webhook_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_webhook(
    webhook_id: int,
    db: Session = Depends(get_db),
    current_admin: User = Depends(require_admin),
) -> Response:
    try:
        webhooks_uc.delete_webhook(db, webhook_id)
    except NotificationError as exc:
        raise to_http_exception(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{webhook_id}/test", response_model=WebhookTestResultRead)
async def run_webhook_test(
    webhook_id: int,
    db: Session = Depends(get_db),
    current_admin: User = Depends(require_admin),
) -> WebhookTestResultRead:
    """Send a test payload to a stored webhook without touching its counters."""

    try:
        result = await webhooks_uc.send_webhook_test(db, webhook_id)
    except NotificationError as exc:
        raise to_http_exception(exc) from exc
    return WebhookTestResultRead.model_validate(result)
