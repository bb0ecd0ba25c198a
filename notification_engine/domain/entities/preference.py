"""Notification preference entities and the default opt-in table."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Mapping


class NotificationChannel(str, Enum):
    """Delivery medium a user can opt in or out of."""

    EMAIL = "EMAIL"
    WEBHOOK = "WEBHOOK"
    TEAMS = "TEAMS"
    SLACK = "SLACK"
    DISCORD = "DISCORD"
    GOTIFY = "GOTIFY"
    PUSHBULLET = "PUSHBULLET"
    FCM = "FCM"
    APNS = "APNS"
    WEB_PUSH = "WEB_PUSH"
    SMS = "SMS"
    IN_APP = "IN_APP"
    RSS = "RSS"


KNOWN_EVENT_TYPES: tuple[str, ...] = (
    "contribution.approved",
    "contribution.rejected",
    "contribution.submitted",
    "user.registered",
    "user.password_reset",
    "user.account_updated",
    "system.maintenance",
    "system.announcement",
)


def _row(*enabled: bool) -> Mapping[str, bool]:
    return MappingProxyType(dict(zip(KNOWN_EVENT_TYPES, enabled)))


# Order of the flags follows KNOWN_EVENT_TYPES.
DEFAULT_PREFERENCES: Mapping[NotificationChannel, Mapping[str, bool]] = MappingProxyType(
    {
        NotificationChannel.EMAIL: _row(True, True, False, True, True, True, True, True),
        NotificationChannel.IN_APP: _row(True, True, True, True, False, True, True, True),
        NotificationChannel.SMS: _row(False, False, False, False, True, False, True, False),
    }
)


def default_preference(channel: NotificationChannel | str, event_type: str) -> bool:
    """Return the built-in setting for ``channel``/``event_type``.

    Pairs missing from the table are disabled.
    """

    try:
        channel = NotificationChannel(channel)
    except ValueError:
        return False
    return DEFAULT_PREFERENCES.get(channel, {}).get(event_type, False)


@dataclass
class NotificationPreference:
    """Explicit opt-in or opt-out stored for a user."""

    id: int | None
    user_id: int
    channel: NotificationChannel
    event_type: str
    enabled: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class PreferenceUpdate:
    """Requested value for one channel/event pair."""

    channel: NotificationChannel
    event_type: str
    enabled: bool


__all__ = [
    "NotificationChannel",
    "KNOWN_EVENT_TYPES",
    "DEFAULT_PREFERENCES",
    "default_preference",
    "NotificationPreference",
    "PreferenceUpdate",
]
