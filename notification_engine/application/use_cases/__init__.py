"""Aggregate application use cases."""

from . import analytics, audience, inbox, preferences, webhooks
from .notifications import (
    cancel_scheduled_notification,
    create_notification,
    list_scheduled_notifications,
    process_scheduled_notifications,
    schedule_notification,
    track_notification_action,
)

__all__ = [
    "analytics",
    "audience",
    "inbox",
    "preferences",
    "webhooks",
    "cancel_scheduled_notification",
    "create_notification",
    "list_scheduled_notifications",
    "process_scheduled_notifications",
    "schedule_notification",
    "track_notification_action",
]
