"""Pydantic schemas exposed by the API layer."""

from .notification import (
    AffectedCountRead,
    InAppNotificationRead,
    JobStatusRead,
    NotificationAnalyticsRead,
    NotificationCreate,
    NotificationCreateResponse,
    NotificationTrackRequest,
    ScheduledNotificationCreateResponse,
    ScheduledNotificationPage,
    ScheduledNotificationRead,
    SchedulerRunRead,
    UnreadCountRead,
)
from .notification_template import (
    NotificationTemplateCreate,
    NotificationTemplatePage,
    NotificationTemplateRead,
)
from .preference import (
    PreferenceBatchUpdateRequest,
    PreferenceItem,
    PreferenceOverviewRead,
    PreferenceSetAllRequest,
    PreferenceSummaryRead,
    PreferenceUpdateRequest,
)
from .webhook import (
    WebhookCreate,
    WebhookRead,
    WebhookTestConfig,
    WebhookTestResultRead,
    WebhookUpdate,
)

__all__ = [
    "AffectedCountRead",
    "InAppNotificationRead",
    "JobStatusRead",
    "NotificationAnalyticsRead",
    "NotificationCreate",
    "NotificationCreateResponse",
    "NotificationTrackRequest",
    "ScheduledNotificationCreateResponse",
    "ScheduledNotificationPage",
    "ScheduledNotificationRead",
    "SchedulerRunRead",
    "UnreadCountRead",
    "NotificationTemplateCreate",
    "NotificationTemplatePage",
    "NotificationTemplateRead",
    "PreferenceBatchUpdateRequest",
    "PreferenceItem",
    "PreferenceOverviewRead",
    "PreferenceSetAllRequest",
    "PreferenceSummaryRead",
    "PreferenceUpdateRequest",
    "WebhookCreate",
    "WebhookRead",
    "WebhookTestConfig",
    "WebhookTestResultRead",
    "WebhookUpdate",
]
