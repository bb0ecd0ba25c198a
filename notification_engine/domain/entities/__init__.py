"""Domain entities exposed by the application."""

from .analytics import (
    AnalyticsAction,
    NotificationAnalyticsEvent,
    NotificationAnalyticsSummary,
    compute_rate,
)
from .audience import (
    AllUsers,
    AudienceDescriptor,
    IndividualUsers,
    SpecificRoles,
    TargetAudience,
    audience_roles,
    audience_user_ids,
    build_audience,
)
from .delivery import DeliveryOutcome, DeliveryPhase, DeliveryState, FinalOutcome
from .notification import (
    DEFAULT_EVENT_TYPE,
    InAppNotification,
    NotificationCategory,
    NotificationPriority,
    NotificationRequest,
    NotificationType,
)
from .notification_template import NotificationTemplate
from .preference import (
    DEFAULT_PREFERENCES,
    KNOWN_EVENT_TYPES,
    NotificationChannel,
    NotificationPreference,
    PreferenceUpdate,
    default_preference,
)
from .role import Role
from .scheduled_notification import ScheduledNotification, ScheduledStatus
from .user import User
from .webhook import (
    DEFAULT_RETRY_ATTEMPTS,
    DEFAULT_RETRY_DELAY_SECONDS,
    DEFAULT_TIMEOUT_SECONDS,
    AuthType,
    ContentType,
    HttpMethod,
    WebhookConfiguration,
    WebhookCredentials,
)

__all__ = [
    "AnalyticsAction",
    "NotificationAnalyticsEvent",
    "NotificationAnalyticsSummary",
    "compute_rate",
    "AllUsers",
    "AudienceDescriptor",
    "IndividualUsers",
    "SpecificRoles",
    "TargetAudience",
    "audience_roles",
    "audience_user_ids",
    "build_audience",
    "DeliveryOutcome",
    "DeliveryPhase",
    "DeliveryState",
    "FinalOutcome",
    "DEFAULT_EVENT_TYPE",
    "InAppNotification",
    "NotificationCategory",
    "NotificationPriority",
    "NotificationRequest",
    "NotificationType",
    "NotificationTemplate",
    "DEFAULT_PREFERENCES",
    "KNOWN_EVENT_TYPES",
    "NotificationChannel",
    "NotificationPreference",
    "PreferenceUpdate",
    "default_preference",
    "Role",
    "ScheduledNotification",
    "ScheduledStatus",
    "User",
    "DEFAULT_RETRY_ATTEMPTS",
    "DEFAULT_RETRY_DELAY_SECONDS",
    "DEFAULT_TIMEOUT_SECONDS",
    "AuthType",
    "ContentType",
    "HttpMethod",
    "WebhookConfiguration",
    "WebhookCredentials",
]
