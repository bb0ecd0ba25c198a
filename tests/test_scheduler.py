from datetime import timedelta

import anyio
import pytest

from notification_engine.application.use_cases.notifications import (
    NotificationScheduler,
    cancel_scheduled_notification,
    schedule_notification,
)
from notification_engine.application.use_cases.notifications import fanout as fanout_module
from notification_engine.domain.entities import (
    DeliveryOutcome,
    IndividualUsers,
    NotificationRequest,
    NotificationType,
    ScheduledStatus,
    SpecificRoles,
)
from notification_engine.domain.errors import InvalidStateTransitionError, NotFoundError
from notification_engine.infrastructure.repositories import (
    InAppNotificationRepository,
    ScheduledNotificationRepository,
    WebhookRepository,
)
from notification_engine.infrastructure.webhooks import WebhookDispatcher
from notification_engine.utils import now_in_app_timezone

pytestmark = pytest.mark.anyio


def _request(audience, *, minutes: int = -1, **overrides) -> NotificationRequest:
    values = {
        "title": "Maintenance window",
        "content": "The service restarts at 22:00.",
        "notification_type": NotificationType.WARNING,
        "audience": audience,
        "scheduled_at": now_in_app_timezone() + timedelta(minutes=minutes),
    }
    values.update(overrides)
    return NotificationRequest(**values)


def _scheduler(session_factory, dispatcher, no_sleep) -> NotificationScheduler:
    return NotificationScheduler(session_factory, dispatcher=dispatcher, sleep=no_sleep)


def _status(db_session, scheduled_id):
    db_session.expire_all()
    return ScheduledNotificationRepository(db_session).get(scheduled_id)


async def test_due_notification_is_delivered_to_individual_user(
    db_session, session_factory, make_user, make_dispatcher, no_sleep
):
    make_user(7)
    admin = make_user(role="admin")
    scheduled_id = schedule_notification(db_session, _request(IndividualUsers((7,))), admin.id)

    report = await _scheduler(session_factory, make_dispatcher(), no_sleep).run_once()

    assert (report.due, report.sent, report.failed) == (1, 1, 0)
    records = InAppNotificationRepository(db_session).list_for_scheduled(scheduled_id)
    assert [record.user_id for record in records] == [7]
    assert records[0].created_by == admin.id
    stored = _status(db_session, scheduled_id)
    assert stored.status is ScheduledStatus.SENT
    assert stored.sent_count == 1
    assert stored.sent_at is not None


async def test_future_notifications_are_left_pending(
    db_session, session_factory, make_user, make_dispatcher, no_sleep
):
    user = make_user()
    scheduled_id = schedule_notification(
        db_session, _request(IndividualUsers((user.id,)), minutes=30), user.id
    )

    report = await _scheduler(session_factory, make_dispatcher(), no_sleep).run_once()

    assert report.due == 0
    assert _status(db_session, scheduled_id).status is ScheduledStatus.PENDING


async def test_cancelled_notification_is_never_delivered(
    db_session, session_factory, make_user, make_dispatcher, make_webhook, no_sleep
):
    user = make_user()
    make_webhook()
    dispatcher = make_dispatcher()
    scheduled_id = schedule_notification(db_session, _request(IndividualUsers((user.id,))), user.id)

    cancel_scheduled_notification(db_session, scheduled_id)
    report = await _scheduler(session_factory, dispatcher, no_sleep).run_once()

    assert report.due == 0
    assert dispatcher.calls == []
    assert InAppNotificationRepository(db_session).list_for_scheduled(scheduled_id) == []
    assert _status(db_session, scheduled_id).status is ScheduledStatus.CANCELLED


async def test_cancel_after_claim_is_rejected(db_session, make_user):
    user = make_user()
    scheduled_id = schedule_notification(db_session, _request(IndividualUsers((user.id,))), user.id)
    assert ScheduledNotificationRepository(db_session).claim(scheduled_id) is True

    with pytest.raises(InvalidStateTransitionError) as excinfo:
        cancel_scheduled_notification(db_session, scheduled_id)

    assert excinfo.value.current == ScheduledStatus.PROCESSING.value
    assert _status(db_session, scheduled_id).status is ScheduledStatus.PROCESSING


async def test_cancel_unknown_notification(db_session):
    with pytest.raises(NotFoundError):
        cancel_scheduled_notification(db_session, 999)


async def test_webhook_only_delivery_counts_as_sent(
    db_session, session_factory, make_user, make_dispatcher, make_webhook, no_sleep
):
    user = make_user(role="admin")
    webhook = make_webhook()
    dispatcher = make_dispatcher()
    scheduled_id = schedule_notification(
        db_session, _request(IndividualUsers((4242,))), user.id
    )

    report = await _scheduler(session_factory, dispatcher, no_sleep).run_once()

    assert report.sent == 1
    assert len(dispatcher.calls) == 1
    assert dispatcher.calls[0]["event_type"] == "system.announcement"
    stored = _status(db_session, scheduled_id)
    assert stored.status is ScheduledStatus.SENT
    assert stored.sent_count == 1
    assert WebhookRepository(db_session).get(webhook.id).success_count == 1


async def test_notification_reaching_nobody_is_marked_failed(
    db_session, session_factory, make_user, make_dispatcher, no_sleep
):
    user = make_user()
    scheduled_id = schedule_notification(
        db_session, _request(SpecificRoles(("nobody",))), user.id
    )

    report = await _scheduler(session_factory, make_dispatcher(), no_sleep).run_once()

    assert report.failed == 1
    stored = _status(db_session, scheduled_id)
    assert stored.status is ScheduledStatus.FAILED
    assert stored.failure_count == 1


async def test_processing_error_does_not_stop_the_scan(
    db_session, session_factory, make_user, make_dispatcher, no_sleep, monkeypatch, caplog
):
    user = make_user()
    original = fanout_module.resolve_audience

    def _resolve(session, descriptor):
        if descriptor == SpecificRoles(("explode",)):
            raise RuntimeError("directory unavailable")
        return original(session, descriptor)

    monkeypatch.setattr(fanout_module, "resolve_audience", _resolve)
    broken_id = schedule_notification(
        db_session, _request(SpecificRoles(("explode",)), minutes=-2), user.id
    )
    healthy_id = schedule_notification(
        db_session, _request(IndividualUsers((user.id,))), user.id
    )

    report = await _scheduler(session_factory, make_dispatcher(), no_sleep).run_once()

    assert (report.sent, report.failed) == (1, 1)
    assert _status(db_session, broken_id).status is ScheduledStatus.FAILED
    assert _status(db_session, healthy_id).status is ScheduledStatus.SENT
    assert "Failed to process scheduled notification" in caplog.text


async def test_unsendable_webhook_url_does_not_fail_the_notification(
    db_session, session_factory, make_user, make_webhook, no_sleep
):
    user = make_user()
    webhook = make_webhook(
        url="https://hooks.example.com:abc/x",
        enabled_events=["system.maintenance"],
        retry_attempts=0,
    )
    scheduled_id = schedule_notification(
        db_session,
        _request(IndividualUsers((user.id,)), event_type="system.maintenance"),
        user.id,
    )

    report = await _scheduler(session_factory, WebhookDispatcher(), no_sleep).run_once()

    assert (report.due, report.sent, report.failed) == (1, 1, 0)
    stored = _status(db_session, scheduled_id)
    assert stored.status is ScheduledStatus.SENT
    assert stored.sent_count == 1
    assert len(InAppNotificationRepository(db_session).list_for_scheduled(scheduled_id)) == 1
    counters = WebhookRepository(db_session).get(webhook.id)
    assert (counters.success_count, counters.failure_count) == (0, 1)
    assert counters.last_triggered_at is not None


async def test_overlapping_scan_is_skipped(
    db_session, session_factory, make_user, make_webhook, no_sleep
):
    user = make_user()
    make_webhook()
    schedule_notification(db_session, _request(IndividualUsers((user.id,))), user.id)
    started = anyio.Event()
    release = anyio.Event()

    class BlockingDispatcher:
        async def deliver(self, config, body, auth_headers, *, event_type):
            started.set()
            await release.wait()
            return DeliveryOutcome(success=True, latency_ms=1.0, status_code=200)

    scheduler = _scheduler(session_factory, BlockingDispatcher(), no_sleep)
    reports = []

    async def _first_scan():
        reports.append(await scheduler.run_once())

    async with anyio.create_task_group() as task_group:
        task_group.start_soon(_first_scan)
        await started.wait()
        assert scheduler.running is True
        second = await scheduler.run_once()
        release.set()

    assert second.skipped is True
    assert reports[0].sent == 1
    assert scheduler.running is False


async def test_stale_claims_are_returned_to_pending(db_session, session_factory, make_user):
    user = make_user()
    scheduled_id = schedule_notification(db_session, _request(IndividualUsers((user.id,))), user.id)
    ScheduledNotificationRepository(db_session).claim(scheduled_id)

    released = NotificationScheduler(session_factory).recover_stale_claims()

    assert released == 1
    assert _status(db_session, scheduled_id).status is ScheduledStatus.PENDING
