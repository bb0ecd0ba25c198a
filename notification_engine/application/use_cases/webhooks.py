"""Use cases managing webhook configurations."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace
from typing import Any
from urllib.parse import urlparse

import anyio
import anyio.to_thread
import httpx
from sqlalchemy.orm import Session

from notification_engine.config import get_settings
from notification_engine.domain.entities import (
    AuthType,
    ContentType,
    HttpMethod,
    WebhookConfiguration,
    WebhookCredentials,
)
from notification_engine.domain.errors import NotFoundError, NotificationValidationError
from notification_engine.infrastructure.repositories import WebhookRepository
from notification_engine.infrastructure.webhooks import (
    WebhookDispatcher,
    auth_configuration_error,
    build_auth_headers,
    build_context,
    detect_template_from_url,
    encode_body,
    preset_test_payload,
    render,
)
from notification_engine.infrastructure.webhooks.retry import Dispatcher
from notification_engine.infrastructure.webhooks.templates import TEST_EVENT_TYPE
from notification_engine.utils import now_in_app_timezone

logger = logging.getLogger(__name__)

MAX_TIMEOUT_SECONDS = 300
MAX_RETRY_ATTEMPTS = 10
MAX_RETRY_DELAY_SECONDS = 3600

_UPDATABLE_FIELDS = frozenset(
    {
        "name",
        "description",
        "url",
        "method",
        "content_type",
        "auth_type",
        "credentials",
        "secret",
        "timeout",
        "retry_attempts",
        "retry_delay",
        "enabled_events",
        "custom_headers",
        "payload_template",
        "is_enabled",
    }
)


@dataclass(frozen=True)
class WebhookTestResult:
    """Outcome of a one-off test delivery; counters are never touched."""

    success: bool
    latency_ms: float
    status_code: int | None = None
    error: str | None = None
    template: str | None = None
    template_error: str | None = None


def list_webhooks(session: Session) -> Sequence[WebhookConfiguration]:
    return WebhookRepository(session).list()


def get_webhook(session: Session, webhook_id: int) -> WebhookConfiguration:
    webhook = WebhookRepository(session).get(webhook_id)
    if webhook is None:
        raise NotFoundError(f"Webhook {webhook_id} not found")
    return webhook


def create_webhook(
    session: Session, webhook: WebhookConfiguration, actor_id: int
) -> WebhookConfiguration:
    validated = validate_webhook(
        replace(
            webhook,
            id=None,
            success_count=0,
            failure_count=0,
            last_triggered_at=None,
            created_by=actor_id,
        )
    )
    created = WebhookRepository(session).create(validated)
    logger.info("Webhook %s (%s) created by user %s", created.id, created.name, actor_id)
    return created


def update_webhook(
    session: Session, webhook_id: int, changes: Mapping[str, Any]
) -> WebhookConfiguration:
    """Apply ``changes`` to a stored webhook; counters cannot be edited."""

    unknown = set(changes) - _UPDATABLE_FIELDS
    if unknown:
        raise NotificationValidationError(
            f"Unsupported webhook field(s): {', '.join(sorted(unknown))}"
        )
    current = get_webhook(session, webhook_id)
    validated = validate_webhook(replace(current, **dict(changes)))
    return WebhookRepository(session).update(validated)


def delete_webhook(session: Session, webhook_id: int) -> None:
    if not WebhookRepository(session).delete(webhook_id):
        raise NotFoundError(f"Webhook {webhook_id} not found")
    logger.info("Webhook %s deleted", webhook_id)


async def send_webhook_test(
    session: Session, webhook_id: int, *, dispatcher: Dispatcher | None = None
) -> WebhookTestResult:
    """Send a test payload to a stored webhook, rendered with its template."""

    webhook = await anyio.to_thread.run_sync(get_webhook, session, webhook_id)
    settings = get_settings()
    context = build_context(
        TEST_EVENT_TYPE,
        {
            "message": f"This is a test webhook from {settings.webhook_source_name}",
            "webhook_id": webhook.id,
            "webhook_name": webhook.name,
        },
        now_in_app_timezone(),
    )
    rendered = render(
        webhook.payload_template,
        context,
        webhook.content_type,
        source=settings.webhook_source_name,
    )
    return await _send_test(
        webhook, rendered.body, dispatcher=dispatcher, template_error=rendered.template_error
    )


async def send_webhook_config_test(
    webhook: WebhookConfiguration,
    *,
    template_id: str | None = None,
    dispatcher: Dispatcher | None = None,
) -> WebhookTestResult:
    """Send a test payload to an unsaved configuration.

    A custom payload template wins; otherwise a preset matching
    ``template_id`` (or the service detected from the URL) is sent.
    """

    webhook = validate_webhook(replace(webhook, id=None))
    settings = get_settings()
    timestamp = now_in_app_timezone().isoformat()
    template = template_id or detect_template_from_url(webhook.url)
    preset = preset_test_payload(
        template, timestamp=timestamp, source=settings.webhook_source_name
    )

    template_error = None
    body = encode_body(preset, webhook.content_type)
    if webhook.payload_template:
        context = build_context(
            TEST_EVENT_TYPE,
            {
                "message": f"This is a test webhook from {settings.webhook_source_name}",
                "test_mode": True,
                "webhook_name": webhook.name,
            },
            timestamp,
        )
        rendered = render(
            webhook.payload_template,
            context,
            webhook.content_type,
            source=settings.webhook_source_name,
        )
        template_error = rendered.template_error
        if template_error is None:
            body = rendered.body
    return await _send_test(
        webhook,
        body,
        dispatcher=dispatcher,
        template=template,
        template_error=template_error,
    )


def validate_webhook(webhook: WebhookConfiguration) -> WebhookConfiguration:
    """Normalize ``webhook`` or raise :class:`NotificationValidationError`."""

    name = (webhook.name or "").strip()
    if not name:
        raise NotificationValidationError("Webhook name is required")
    url = (webhook.url or "").strip()
    try:
        parsed = urlparse(url)
        httpx.URL(url)
    except (ValueError, httpx.InvalidURL) as exc:
        raise NotificationValidationError(f"Webhook URL is invalid: {exc}") from exc
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise NotificationValidationError("Webhook URL must be an absolute http(s) URL")

    try:
        method = HttpMethod(webhook.method)
        content_type = ContentType(webhook.content_type)
        auth_type = AuthType(webhook.auth_type or AuthType.NONE)
    except ValueError as exc:
        raise NotificationValidationError(str(exc)) from exc

    credentials = webhook.credentials or WebhookCredentials()
    error = auth_configuration_error(auth_type, credentials)
    if error is not None:
        raise NotificationValidationError(str(error))

    if not 1 <= webhook.timeout <= MAX_TIMEOUT_SECONDS:
        raise NotificationValidationError(
            f"Timeout must be between 1 and {MAX_TIMEOUT_SECONDS} seconds"
        )
    if not 0 <= webhook.retry_attempts <= MAX_RETRY_ATTEMPTS:
        raise NotificationValidationError(
            f"Retry attempts must be between 0 and {MAX_RETRY_ATTEMPTS}"
        )
    if not 0 <= webhook.retry_delay <= MAX_RETRY_DELAY_SECONDS:
        raise NotificationValidationError(
            f"Retry delay must be between 0 and {MAX_RETRY_DELAY_SECONDS} seconds"
        )

    events = list(
        dict.fromkeys(event.strip() for event in webhook.enabled_events or [] if event and event.strip())
    )
    headers = {
        str(key).strip(): str(value)
        for key, value in (webhook.custom_headers or {}).items()
        if str(key).strip()
    }
    return replace(
        webhook,
        name=name,
        url=url,
        method=method,
        content_type=content_type,
        auth_type=auth_type,
        credentials=credentials,
        enabled_events=events,
        custom_headers=headers,
        payload_template=webhook.payload_template or None,
        secret=webhook.secret or None,
    )


async def _send_test(
    webhook: WebhookConfiguration,
    body: str,
    *,
    dispatcher: Dispatcher | None,
    template: str | None = None,
    template_error: str | None = None,
) -> WebhookTestResult:
    dispatcher = dispatcher or WebhookDispatcher(user_agent=get_settings().webhook_user_agent)
    outcome = await dispatcher.deliver(
        webhook,
        body,
        build_auth_headers(webhook.auth_type, webhook.credentials),
        event_type=TEST_EVENT_TYPE,
    )
    if not outcome.success:
        logger.warning("Test delivery to webhook %s failed: %s", webhook.id, outcome.error)
    return WebhookTestResult(
        success=outcome.success,
        latency_ms=outcome.latency_ms,
        status_code=outcome.status_code,
        error=outcome.error,
        template=template,
        template_error=template_error,
    )


__all__ = [
    "WebhookTestResult",
    "list_webhooks",
    "get_webhook",
    "create_webhook",
    "update_webhook",
    "delete_webhook",
    "send_webhook_test",
    "send_webhook_config_test",
    "validate_webhook",
]
