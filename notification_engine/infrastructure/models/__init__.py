"""ORM models used by the application infrastructure."""

from .analytics import NotificationAnalyticsModel
from .in_app_notification import InAppNotificationModel
from .notification_template import NotificationTemplateModel
from .preference import NotificationPreferenceModel
from .role import RoleModel
from .scheduled_notification import ScheduledNotificationModel
from .user import UserModel
from .webhook_configuration import WebhookConfigurationModel

__all__ = [
    "NotificationAnalyticsModel",
    "InAppNotificationModel",
    "NotificationTemplateModel",
    "NotificationPreferenceModel",
    "RoleModel",
    "ScheduledNotificationModel",
    "UserModel",
    "WebhookConfigurationModel",
]
