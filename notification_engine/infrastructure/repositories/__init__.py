"""Repository implementations for persistence."""

from .analytics_repository import AnalyticsRepository
from .in_app_notification_repository import InAppNotificationRepository
from .notification_template_repository import NotificationTemplateRepository
from .preference_repository import PreferenceRepository
from .scheduled_notification_repository import ScheduledNotificationRepository
from .user_repository import UserRepository
from .webhook_repository import WebhookRepository

__all__ = [
    "AnalyticsRepository",
    "InAppNotificationRepository",
    "NotificationTemplateRepository",
    "PreferenceRepository",
    "ScheduledNotificationRepository",
    "UserRepository",
    "WebhookRepository",
]
