"""Pydantic models describing notification templates."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from notification_engine.domain.entities import NotificationCategory, NotificationType


class NotificationTemplateCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    event_type: str = Field(..., min_length=1, max_length=50)
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1, max_length=2000)
    notification_type: NotificationType = NotificationType.INFO
    category: NotificationCategory = NotificationCategory.SYSTEM
    variables: list[str] = Field(default_factory=list)


class NotificationTemplateRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None = None
    event_type: str
    title: str
    content: str
    notification_type: NotificationType
    category: NotificationCategory
    variables: list[str]
    is_active: bool
    created_by: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class NotificationTemplatePage(BaseModel):
    items: list[NotificationTemplateRead]
    total: int
    page: int
    limit: int
    total_pages: int


__all__ = [
    "NotificationTemplateCreate",
    "NotificationTemplateRead",
    "NotificationTemplatePage",
]
