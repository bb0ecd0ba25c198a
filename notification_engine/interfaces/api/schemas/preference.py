"""Schemas for notification preference endpoints."""

from __future__ import annotations

from pydantic import BaseModel, Field

from notification_engine.domain.entities import NotificationChannel


class PreferenceItem(BaseModel):
    channel: NotificationChannel
    event_type: str = Field(..., min_length=3, max_length=100)
    enabled: bool


class PreferenceUpdateRequest(BaseModel):
    preferences: list[PreferenceItem] = Field(..., min_length=1)


class PreferenceBatchUpdateRequest(BaseModel):
    channel: NotificationChannel
    preferences: dict[str, bool] = Field(..., min_length=1)


class PreferenceSetAllRequest(BaseModel):
    enabled: bool


class PreferenceOverviewRead(BaseModel):
    user_id: int
    matrix: dict[str, dict[str, bool]]
    explicit: list[PreferenceItem]


class PreferenceSummaryRead(BaseModel):
    channels: dict[str, dict[str, int]]


__all__ = [
    "PreferenceItem",
    "PreferenceUpdateRequest",
    "PreferenceBatchUpdateRequest",
    "PreferenceSetAllRequest",
    "PreferenceOverviewRead",
    "PreferenceSummaryRead",
]
