from datetime import timedelta

import pytest

from notification_engine.application.use_cases import inbox as inbox_uc
from notification_engine.domain.entities import InAppNotification
from notification_engine.domain.errors import NotFoundError, NotificationValidationError
from notification_engine.infrastructure.repositories import (
    AnalyticsRepository,
    InAppNotificationRepository,
)
from notification_engine.utils import now_in_app_timezone


@pytest.fixture
def add_notifications(db_session):
    def _add(user_id: int, count: int = 1, **overrides) -> list[InAppNotification]:
        now = now_in_app_timezone()
        return InAppNotificationRepository(db_session).create_many(
            InAppNotification(
                id=None,
                user_id=user_id,
                title=f"Notice {index}",
                content="Body",
                event_type="system.announcement",
                created_at=now + timedelta(seconds=index),
                **overrides,
            )
            for index in range(count)
        )

    return _add


def test_list_hides_expired_notifications_and_sorts_newest_first(
    db_session, make_user, add_notifications
):
    user = make_user()
    visible = add_notifications(user.id, 2)
    add_notifications(user.id, expires_at=now_in_app_timezone() - timedelta(minutes=1))

    listed = inbox_uc.list_notifications(db_session, user.id)

    assert [item.id for item in listed] == [visible[1].id, visible[0].id]
    assert inbox_uc.unread_count(db_session, user.id) == 2


def test_list_validates_pagination(db_session, make_user):
    user = make_user()

    with pytest.raises(NotificationValidationError):
        inbox_uc.list_notifications(db_session, user.id, limit=0)
    with pytest.raises(NotificationValidationError):
        inbox_uc.list_notifications(db_session, user.id, offset=-1)


def test_get_notification_checks_owner_and_expiry(db_session, make_user, add_notifications):
    owner = make_user()
    other = make_user()
    notification = add_notifications(owner.id)[0]
    expired = add_notifications(owner.id, expires_at=now_in_app_timezone() - timedelta(minutes=1))[0]

    fetched = inbox_uc.get_notification(db_session, owner.id, notification.id)

    assert fetched.id == notification.id
    assert fetched.title == "Notice 0"
    assert fetched.is_read is False
    with pytest.raises(NotFoundError):
        inbox_uc.get_notification(db_session, other.id, notification.id)
    with pytest.raises(NotFoundError):
        inbox_uc.get_notification(db_session, owner.id, expired.id)
    with pytest.raises(NotFoundError):
        inbox_uc.get_notification(db_session, owner.id, 9999)


def test_mark_read_records_a_single_read_event(db_session, make_user, add_notifications):
    user = make_user()
    notification = add_notifications(user.id)[0]

    first = inbox_uc.mark_read(db_session, user.id, notification.id)
    second = inbox_uc.mark_read(db_session, user.id, notification.id)

    assert first.is_read is True
    assert first.read_at is not None
    assert second.is_read is True
    assert AnalyticsRepository(db_session).count_by_action() == {"read": 1}
    assert inbox_uc.list_notifications(db_session, user.id, unread_only=True) == []


def test_mark_read_of_someone_elses_notification(db_session, make_user, add_notifications):
    owner = make_user()
    other = make_user()
    notification = add_notifications(owner.id)[0]

    with pytest.raises(NotFoundError):
        inbox_uc.mark_read(db_session, other.id, notification.id)
    with pytest.raises(NotFoundError):
        inbox_uc.delete_notification(db_session, other.id, notification.id)


def test_mark_all_read_only_counts_changed_rows(db_session, make_user, add_notifications):
    user = make_user()
    notifications = add_notifications(user.id, 3)
    inbox_uc.mark_read(db_session, user.id, notifications[0].id)

    assert inbox_uc.mark_all_read(db_session, user.id) == 2
    assert inbox_uc.mark_all_read(db_session, user.id) == 0
    assert inbox_uc.unread_count(db_session, user.id) == 0


def test_delete_and_clear(db_session, make_user, add_notifications):
    user = make_user()
    notifications = add_notifications(user.id, 3)

    inbox_uc.delete_notification(db_session, user.id, notifications[0].id)

    assert inbox_uc.clear_notifications(db_session, user.id) == 2
    assert inbox_uc.list_notifications(db_session, user.id) == []


def test_expire_notifications_removes_only_past_expiry(db_session, make_user, add_notifications):
    user = make_user()
    now = now_in_app_timezone()
    add_notifications(user.id, expires_at=now - timedelta(hours=1))
    kept = add_notifications(user.id, expires_at=now + timedelta(hours=1))
    add_notifications(user.id)

    assert inbox_uc.expire_notifications(db_session, now=now) == 1
    assert len(inbox_uc.list_notifications(db_session, user.id)) == 2
    assert InAppNotificationRepository(db_session).get(kept[0].id) is not None
