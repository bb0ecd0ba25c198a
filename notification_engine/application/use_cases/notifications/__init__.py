"""Notification fan-out, administration and scheduling use cases."""

from .admin import (
    cancel_scheduled_notification,
    create_notification,
    list_scheduled_notifications,
    schedule_notification,
    track_notification_action,
    validate_request,
)
from .fanout import FanoutReport, NotificationFanout
from .scheduler import (
    NotificationScheduler,
    SchedulerRunReport,
    get_notification_scheduler,
    process_scheduled_notifications,
)
from .templates import create_template, list_templates, validate_template

__all__ = [
    "cancel_scheduled_notification",
    "create_notification",
    "list_scheduled_notifications",
    "schedule_notification",
    "track_notification_action",
    "validate_request",
    "FanoutReport",
    "NotificationFanout",
    "NotificationScheduler",
    "SchedulerRunReport",
    "get_notification_scheduler",
    "process_scheduled_notifications",
    "create_template",
    "list_templates",
    "validate_template",
]
