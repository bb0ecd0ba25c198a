import pytest

from notification_engine.domain.entities import (
    AuthType,
    DeliveryOutcome,
    DeliveryPhase,
    DeliveryState,
    WebhookCredentials,
)
from notification_engine.infrastructure.repositories import WebhookRepository
from notification_engine.infrastructure.webhooks import RetryController
from notification_engine.infrastructure.webhooks import retry as retry_module

FAILED = DeliveryOutcome(success=False, latency_ms=3.0, status_code=500, error="Webhook failed: 500")
TIMED_OUT = DeliveryOutcome(success=False, latency_ms=30.0, error="Timed out", timed_out=True)
OK = DeliveryOutcome(success=True, latency_ms=2.0, status_code=200)


def test_delivery_state_bounds_the_number_of_attempts():
    state = DeliveryState.start(2)

    state = state.advance(TIMED_OUT)
    assert state.phase is DeliveryPhase.ATTEMPTING
    assert state.attempt == 2

    state = state.advance(FAILED)
    assert state.phase is DeliveryPhase.FAILED
    assert state.attempt == 2
    assert state.timeouts == 1
    assert state.last_outcome == FAILED

    with pytest.raises(ValueError):
        state.advance(OK)


@pytest.mark.anyio
async def test_permanent_failure_uses_every_retry_and_counts_once(
    db_session, make_webhook, make_dispatcher, recording_sleep, sleeps, caplog
):
    webhook = make_webhook(retry_attempts=3, retry_delay=5)
    dispatcher = make_dispatcher(FAILED)
    controller = RetryController(dispatcher, WebhookRepository(db_session), sleep=recording_sleep)
    caplog.set_level("WARNING", logger=retry_module.__name__)

    final = await controller.execute(webhook, "{}", event_type="system.announcement")

    assert final.success is False
    assert final.attempts == 4
    assert len(dispatcher.calls) == 4
    assert sleeps == [5, 5, 5]
    stored = WebhookRepository(db_session).get(webhook.id)
    assert stored.failure_count == 1
    assert stored.success_count == 0
    assert stored.last_triggered_at is not None
    assert "failed after 4 attempt(s)" in caplog.text


@pytest.mark.anyio
async def test_success_after_retry_increments_success_counter(
    db_session, make_webhook, make_dispatcher, recording_sleep, sleeps
):
    webhook = make_webhook(retry_attempts=3, retry_delay=2)
    dispatcher = make_dispatcher(TIMED_OUT, OK)
    controller = RetryController(dispatcher, WebhookRepository(db_session), sleep=recording_sleep)

    final = await controller.execute(webhook, "{}", event_type="system.announcement")

    assert final.success is True
    assert final.attempts == 2
    assert final.timeouts == 1
    assert sleeps == [2]
    stored = WebhookRepository(db_session).get(webhook.id)
    assert (stored.success_count, stored.failure_count) == (1, 0)


@pytest.mark.anyio
async def test_zero_retries_means_a_single_attempt(make_webhook, make_dispatcher, no_sleep):
    webhook = make_webhook(retry_attempts=0)
    dispatcher = make_dispatcher(FAILED)

    final = await RetryController(dispatcher, sleep=no_sleep).execute(
        webhook, "{}", event_type="system.announcement"
    )

    assert final.attempts == 1
    assert len(dispatcher.calls) == 1


@pytest.mark.anyio
async def test_auth_headers_are_passed_to_every_attempt(make_webhook, make_dispatcher, no_sleep):
    webhook = make_webhook(
        retry_attempts=1,
        auth_type=AuthType.BEARER,
        credentials=WebhookCredentials(token="T"),
    )
    dispatcher = make_dispatcher(FAILED, OK)

    await RetryController(dispatcher, sleep=no_sleep).execute(
        webhook, "{}", event_type="system.announcement", template_error="bad template"
    )

    assert [call["auth_headers"] for call in dispatcher.calls] == [
        {"Authorization": "Bearer T"},
        {"Authorization": "Bearer T"},
    ]


@pytest.mark.anyio
async def test_raising_dispatcher_counts_as_a_failed_attempt(
    db_session, make_webhook, no_sleep, caplog
):
    webhook = make_webhook(retry_attempts=1)
    calls = []

    class ExplodingDispatcher:
        async def deliver(self, config, body, auth_headers, *, event_type):
            calls.append(config.id)
            raise RuntimeError("socket exploded")

    final = await RetryController(
        ExplodingDispatcher(), WebhookRepository(db_session), sleep=no_sleep
    ).execute(webhook, "{}", event_type="system.announcement")

    assert final.success is False
    assert final.attempts == 2
    assert final.last_outcome.error == "socket exploded"
    assert len(calls) == 2
    db_session.expire_all()
    assert WebhookRepository(db_session).get(webhook.id).failure_count == 1
    assert "Dispatcher raised for webhook" in caplog.text
