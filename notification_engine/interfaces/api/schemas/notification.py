"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from notification_engine.domain.entities import (
    DEFAULT_EVENT_TYPE,
    AnalyticsAction,
    NotificationCategory,
    NotificationPriority,
    NotificationType,
    ScheduledStatus,
    TargetAudience,
)


class NotificationCreate(BaseModel):
    """Payload used by administrators to send or schedule a notification."""

    model_config = ConfigDict(extra="forbid")

    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)
    notification_type: NotificationType = NotificationType.INFO
    target_audience: TargetAudience
    target_roles: list[str] | None = None
    target_user_ids: list[int] | None = None
    event_type: str = Field(default=DEFAULT_EVENT_TYPE, min_length=3, max_length=100)
    scheduled_at: datetime | None = None
    expires_at: datetime | None = None
    action_url: str | None = Field(default=None, max_length=500)
    metadata: dict[str, Any] = Field(default_factory=dict)


class NotificationCreateResponse(BaseModel):
    notification_ids: list[int]
    count: int


class ScheduledNotificationCreateResponse(BaseModel):
    id: int


class ScheduledNotificationRead(BaseModel):
    id: int
    title: str
    content: str
    notification_type: NotificationType
    event_type: str
    target_audience: TargetAudience
    target_roles: list[str] | None = None
    target_user_ids: list[int] | None = None
    scheduled_at: datetime | None
    expires_at: datetime | None = None
    action_url: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    status: ScheduledStatus
    sent_count: int
    failure_count: int
    sent_at: datetime | None = None
    created_by: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ScheduledNotificationPage(BaseModel):
    items: list[ScheduledNotificationRead]
    total: int
    page: int
    limit: int


class SchedulerRunRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    due: int
    sent: int
    failed: int
    lost_claims: int
    skipped: bool


class InAppNotificationRead(BaseModel):
    """Representation of an inbox notification delivered to the client."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    title: str
    content: str
    event_type: str
    notification_type: NotificationType
    priority: NotificationPriority
    category: NotificationCategory
    is_read: bool
    read_at: datetime | None = None
    action_url: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    expires_at: datetime | None = None
    created_at: datetime | None = None


class UnreadCountRead(BaseModel):
    count: int


class AffectedCountRead(BaseModel):
    count: int


class NotificationTrackRequest(BaseModel):
    action: AnalyticsAction
    action_url: str | None = Field(default=None, max_length=500)


class NotificationAnalyticsRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_sent: int
    total_read: int
    total_clicked: int
    read_rate: float
    click_rate: float
    action_counts: dict[str, int] = Field(default_factory=dict)


class JobStatusRead(BaseModel):
    name: str
    interval_seconds: float
    running: bool
    run_count: int
    error_count: int
    last_run_at: str | None = None
    last_error: str | None = None


__all__ = [
    "NotificationCreate",
    "NotificationCreateResponse",
    "ScheduledNotificationCreateResponse",
    "ScheduledNotificationRead",
    "ScheduledNotificationPage",
    "SchedulerRunRead",
    "InAppNotificationRead",
    "UnreadCountRead",
    "AffectedCountRead",
    "NotificationTrackRequest",
    "NotificationAnalyticsRead",
    "JobStatusRead",
]
