"""Use cases deciding and managing per-channel notification preferences."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

from sqlalchemy.orm import Session

from notification_engine.domain.entities import (
    KNOWN_EVENT_TYPES,
    NotificationChannel,
    NotificationPreference,
    PreferenceUpdate,
    default_preference,
)
from notification_engine.domain.errors import NotificationValidationError
from notification_engine.infrastructure.repositories import (
    PreferenceRepository,
    UserRepository,
)

_EVENT_TYPE_PATTERN = re.compile(r"^[a-z0-9_]+(?:\.[a-z0-9_]+)+$")


@dataclass(frozen=True)
class PreferenceOverview:
    """Effective settings of a user with the explicit rows behind them."""

    user_id: int
    matrix: dict[str, dict[str, bool]]
    explicit: Sequence[NotificationPreference]


def is_enabled(
    session: Session,
    user_id: int,
    channel: NotificationChannel | str,
    event_type: str,
) -> bool:
    """Return whether ``user_id`` receives ``event_type`` through ``channel``."""

    channel = _parse_channel(channel)
    row = PreferenceRepository(session).get(user_id, channel, event_type)
    if row is not None:
        return row.enabled
    return default_preference(channel, event_type)


def users_with_enabled(
    session: Session, channel: NotificationChannel | str, event_type: str
) -> set[int]:
    """Return every user id that receives ``event_type`` through ``channel``.

    Only active users qualify. Explicit opt-ins are included, users without
    a row follow the default, and explicit opt-outs are removed.
    """

    channel = _parse_channel(channel)
    rows = PreferenceRepository(session).list_for_channel_event(channel, event_type)
    opted_in = {row.user_id for row in rows if row.enabled}
    opted_out = {row.user_id for row in rows if not row.enabled}

    active = UserRepository(session).list_active_ids()
    enabled = opted_in & active
    if default_preference(channel, event_type):
        enabled |= active
    return enabled - opted_out


def get_preferences(session: Session, user_id: int) -> PreferenceOverview:
    """Return the effective preference matrix of ``user_id``."""

    explicit = PreferenceRepository(session).list_for_user(user_id)
    overrides = {(row.channel, row.event_type): row.enabled for row in explicit}
    event_types = list(KNOWN_EVENT_TYPES)
    event_types.extend(
        sorted({row.event_type for row in explicit} - set(KNOWN_EVENT_TYPES))
    )

    matrix: dict[str, dict[str, bool]] = {}
    for channel in NotificationChannel:
        matrix[channel.value] = {
            event_type: overrides.get(
                (channel, event_type), default_preference(channel, event_type)
            )
            for event_type in event_types
        }
    return PreferenceOverview(user_id=user_id, matrix=matrix, explicit=explicit)


def update_preferences(
    session: Session, user_id: int, updates: Iterable[PreferenceUpdate]
) -> list[NotificationPreference]:
    """Store explicit values for each ``(channel, event_type)`` in ``updates``."""

    validated = [
        PreferenceUpdate(
            channel=_parse_channel(update.channel),
            event_type=_validate_event_type(update.event_type),
            enabled=bool(update.enabled),
        )
        for update in updates
    ]
    if not validated:
        raise NotificationValidationError("At least one preference update is required")
    return PreferenceRepository(session).upsert_many(user_id, validated)


def batch_update_preferences(
    session: Session,
    user_id: int,
    channel: NotificationChannel | str,
    values: Mapping[str, bool],
) -> list[NotificationPreference]:
    """Update several event types of a single channel at once."""

    parsed = _parse_channel(channel)
    return update_preferences(
        session,
        user_id,
        [
            PreferenceUpdate(channel=parsed, event_type=event_type, enabled=enabled)
            for event_type, enabled in values.items()
        ],
    )


def set_all_preferences(
    session: Session, user_id: int, enabled: bool
) -> list[NotificationPreference]:
    """Enable or disable every known channel and event type for ``user_id``."""

    return PreferenceRepository(session).upsert_many(
        user_id,
        [
            PreferenceUpdate(channel=channel, event_type=event_type, enabled=enabled)
            for channel in NotificationChannel
            for event_type in KNOWN_EVENT_TYPES
        ],
    )


def reset_preferences(session: Session, user_id: int) -> int:
    """Drop every explicit row so the defaults apply again."""

    return PreferenceRepository(session).delete_for_user(user_id)


def preference_summary(session: Session, user_id: int) -> dict[str, dict[str, int]]:
    """Return how many known event types are enabled per channel."""

    matrix = get_preferences(session, user_id).matrix
    return {
        channel: {
            "enabled": sum(1 for value in events.values() if value),
            "total": len(events),
        }
        for channel, events in matrix.items()
    }


def _parse_channel(channel: NotificationChannel | str) -> NotificationChannel:
    try:
        return NotificationChannel(channel)
    except ValueError as exc:
        raise NotificationValidationError(f"Unknown notification channel: {channel}") from exc


def _validate_event_type(event_type: str) -> str:
    normalized = (event_type or "").strip()
    if not _EVENT_TYPE_PATTERN.match(normalized):
        raise NotificationValidationError(f"Invalid event type: {event_type!r}")
    return normalized


__all__ = [
    "PreferenceOverview",
    "is_enabled",
    "users_with_enabled",
    "get_preferences",
    "update_preferences",
    "batch_update_preferences",
    "set_all_preferences",
    "reset_preferences",
    "preference_summary",
]
