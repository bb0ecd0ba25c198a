import pytest

from notification_engine.application.use_cases import preferences as preferences_uc
from notification_engine.domain.entities import (
    DEFAULT_PREFERENCES,
    KNOWN_EVENT_TYPES,
    NotificationChannel,
    PreferenceUpdate,
    default_preference,
)
from notification_engine.domain.errors import NotificationValidationError


@pytest.mark.parametrize("channel", list(NotificationChannel))
@pytest.mark.parametrize("event_type", [*KNOWN_EVENT_TYPES, "custom.event"])
def test_is_enabled_without_rows_matches_default_table(db_session, make_user, channel, event_type):
    user = make_user()

    assert preferences_uc.is_enabled(db_session, user.id, channel, event_type) is default_preference(
        channel, event_type
    )


def test_default_table_highlights():
    assert default_preference(NotificationChannel.IN_APP, "system.announcement") is True
    assert default_preference(NotificationChannel.IN_APP, "user.password_reset") is False
    assert default_preference(NotificationChannel.SMS, "user.password_reset") is True
    assert default_preference(NotificationChannel.EMAIL, "contribution.submitted") is False
    assert default_preference(NotificationChannel.SLACK, "system.announcement") is False
    assert default_preference("UNKNOWN", "system.announcement") is False


def test_default_table_is_read_only():
    with pytest.raises(TypeError):
        DEFAULT_PREFERENCES[NotificationChannel.EMAIL]["user.registered"] = False  # type: ignore[index]


def test_explicit_row_overrides_default(db_session, make_user):
    user = make_user()
    preferences_uc.update_preferences(
        db_session,
        user.id,
        [
            PreferenceUpdate(NotificationChannel.IN_APP, "system.announcement", False),
            PreferenceUpdate(NotificationChannel.SLACK, "system.announcement", True),
        ],
    )

    assert preferences_uc.is_enabled(db_session, user.id, "IN_APP", "system.announcement") is False
    assert preferences_uc.is_enabled(db_session, user.id, "SLACK", "system.announcement") is True


def test_update_preferences_upserts_existing_rows(db_session, make_user):
    user = make_user()
    update = PreferenceUpdate(NotificationChannel.EMAIL, "user.registered", False)
    preferences_uc.update_preferences(db_session, user.id, [update])
    preferences_uc.update_preferences(
        db_session, user.id, [PreferenceUpdate(NotificationChannel.EMAIL, "user.registered", True)]
    )

    overview = preferences_uc.get_preferences(db_session, user.id)

    assert len(overview.explicit) == 1
    assert overview.matrix["EMAIL"]["user.registered"] is True


@pytest.mark.parametrize(
    "update",
    [
        PreferenceUpdate("CARRIER_PIGEON", "system.announcement", True),
        PreferenceUpdate(NotificationChannel.EMAIL, "announcement", True),
        PreferenceUpdate(NotificationChannel.EMAIL, "System.Announcement", True),
    ],
)
def test_update_preferences_rejects_invalid_values(db_session, make_user, update):
    user = make_user()

    with pytest.raises(NotificationValidationError):
        preferences_uc.update_preferences(db_session, user.id, [update])

    assert preferences_uc.get_preferences(db_session, user.id).explicit == []


def test_users_with_enabled_combines_defaults_and_overrides(db_session, make_user):
    default_user = make_user()
    opted_out = make_user()
    inactive = make_user(is_active=False)
    inactive_opted_in = make_user(is_active=False)

    preferences_uc.update_preferences(
        db_session,
        opted_out.id,
        [PreferenceUpdate(NotificationChannel.IN_APP, "system.announcement", False)],
    )
    preferences_uc.update_preferences(
        db_session,
        inactive_opted_in.id,
        [PreferenceUpdate(NotificationChannel.IN_APP, "system.announcement", True)],
    )

    enabled = preferences_uc.users_with_enabled(
        db_session, NotificationChannel.IN_APP, "system.announcement"
    )

    assert default_user.id in enabled
    assert opted_out.id not in enabled
    assert inactive.id not in enabled
    assert inactive_opted_in.id not in enabled


def test_users_with_enabled_for_default_off_pair_only_returns_opt_ins(db_session, make_user):
    make_user()
    opted_in = make_user()
    preferences_uc.update_preferences(
        db_session,
        opted_in.id,
        [PreferenceUpdate(NotificationChannel.SLACK, "user.registered", True)],
    )

    assert preferences_uc.users_with_enabled(db_session, "SLACK", "user.registered") == {opted_in.id}


def test_matrix_includes_custom_event_types(db_session, make_user):
    user = make_user()
    preferences_uc.batch_update_preferences(
        db_session, user.id, "WEBHOOK", {"billing.invoice_paid": True, "system.maintenance": True}
    )

    matrix = preferences_uc.get_preferences(db_session, user.id).matrix

    assert set(matrix) == {channel.value for channel in NotificationChannel}
    assert matrix["WEBHOOK"]["billing.invoice_paid"] is True
    assert matrix["EMAIL"]["billing.invoice_paid"] is False
    assert matrix["WEBHOOK"]["system.maintenance"] is True


def test_set_all_then_reset_restores_defaults(db_session, make_user):
    user = make_user()

    preferences_uc.set_all_preferences(db_session, user.id, False)
    summary = preferences_uc.preference_summary(db_session, user.id)
    assert all(counts["enabled"] == 0 for counts in summary.values())
    assert summary["IN_APP"]["total"] == len(KNOWN_EVENT_TYPES)

    removed = preferences_uc.reset_preferences(db_session, user.id)

    assert removed == len(NotificationChannel) * len(KNOWN_EVENT_TYPES)
    summary = preferences_uc.preference_summary(db_session, user.id)
    assert summary["IN_APP"] == {"enabled": 7, "total": len(KNOWN_EVENT_TYPES)}
    assert summary["SMS"] == {"enabled": 2, "total": len(KNOWN_EVENT_TYPES)}
    assert summary["RSS"]["enabled"] == 0
