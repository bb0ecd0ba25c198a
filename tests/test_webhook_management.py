import json

import pytest

from notification_engine.application.use_cases import webhooks as webhooks_uc
from notification_engine.domain.entities import (
    AuthType,
    DeliveryOutcome,
    WebhookConfiguration,
    WebhookCredentials,
)
from notification_engine.domain.errors import NotFoundError, NotificationValidationError
from notification_engine.infrastructure.repositories import WebhookRepository


def _webhook(**overrides) -> WebhookConfiguration:
    values = {
        "id": None,
        "name": "  Alerts  ",
        "url": "https://hooks.example.com/alerts",
        "enabled_events": ["system.announcement", "system.announcement", " "],
    }
    values.update(overrides)
    return WebhookConfiguration(**values)


def test_create_normalizes_and_resets_counters(db_session, make_user):
    admin = make_user(role="admin")

    created = webhooks_uc.create_webhook(
        db_session, _webhook(success_count=9, failure_count=4), admin.id
    )

    assert created.id is not None
    assert created.name == "Alerts"
    assert created.enabled_events == ["system.announcement"]
    assert (created.success_count, created.failure_count) == (0, 0)
    assert created.created_by == admin.id


@pytest.mark.parametrize(
    "overrides",
    [
        {"url": "ftp://example.com/hook"},
        {"url": "not a url"},
        {"url": "https://hooks.example.com:abc/x"},
        {"url": "http://[::1/hook"},
        {"name": " "},
        {"timeout": 0},
        {"retry_attempts": 11},
        {"retry_delay": -1},
        {"auth_type": AuthType.BEARER},
        {"auth_type": "digest"},
    ],
)
def test_create_rejects_invalid_configuration(db_session, make_user, overrides):
    admin = make_user(role="admin")

    with pytest.raises(NotificationValidationError):
        webhooks_uc.create_webhook(db_session, _webhook(**overrides), admin.id)

    assert webhooks_uc.list_webhooks(db_session) == []


def test_update_changes_fields_but_not_counters(db_session, make_user, make_webhook):
    make_user(role="admin")
    webhook = make_webhook()

    updated = webhooks_uc.update_webhook(
        db_session,
        webhook.id,
        {
            "retry_attempts": 0,
            "auth_type": AuthType.BEARER,
            "credentials": WebhookCredentials(token="T"),
        },
    )

    assert updated.retry_attempts == 0
    assert updated.auth_type is AuthType.BEARER
    with pytest.raises(NotificationValidationError):
        webhooks_uc.update_webhook(db_session, webhook.id, {"success_count": 100})


def test_get_and_delete_unknown_webhook(db_session):
    with pytest.raises(NotFoundError):
        webhooks_uc.get_webhook(db_session, 404)
    with pytest.raises(NotFoundError):
        webhooks_uc.delete_webhook(db_session, 404)


@pytest.mark.anyio
async def test_send_test_uses_template_and_leaves_counters_alone(
    db_session, make_webhook, make_dispatcher
):
    webhook = make_webhook(payload_template='{"text": "{{data.message}}", "event": "{{event}}"}')
    dispatcher = make_dispatcher(
        DeliveryOutcome(success=False, latency_ms=4.0, status_code=404, error="Webhook failed: 404")
    )

    result = await webhooks_uc.send_webhook_test(db_session, webhook.id, dispatcher=dispatcher)

    assert result.success is False
    assert result.status_code == 404
    body = json.loads(dispatcher.calls[0]["body"])
    assert body["event"] == "webhook.test"
    assert dispatcher.calls[0]["event_type"] == "webhook.test"
    stored = WebhookRepository(db_session).get(webhook.id)
    assert (stored.success_count, stored.failure_count) == (0, 0)
    assert stored.last_triggered_at is None


@pytest.mark.anyio
async def test_config_test_picks_preset_from_url(make_dispatcher):
    dispatcher = make_dispatcher()

    result = await webhooks_uc.send_webhook_config_test(
        _webhook(url="https://hooks.slack.com/services/T/B/X"), dispatcher=dispatcher
    )

    assert result.success is True
    assert result.template == "slack"
    assert "blocks" in json.loads(dispatcher.calls[0]["body"])


@pytest.mark.anyio
async def test_config_test_reports_broken_template(make_dispatcher):
    dispatcher = make_dispatcher()

    result = await webhooks_uc.send_webhook_config_test(
        _webhook(payload_template="{{{"), template_id="discord", dispatcher=dispatcher
    )

    assert result.template == "discord"
    assert result.template_error is not None
    assert "embeds" in json.loads(dispatcher.calls[0]["body"])
