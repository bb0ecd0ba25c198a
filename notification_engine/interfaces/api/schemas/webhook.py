"""Schemas for webhook configuration endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from notification_engine.domain.entities import (
    DEFAULT_RETRY_ATTEMPTS,
    DEFAULT_RETRY_DELAY_SECONDS,
    DEFAULT_TIMEOUT_SECONDS,
    AuthType,
    ContentType,
    HttpMethod,
)


class WebhookBase(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = None
    url: str = Field(..., min_length=1, max_length=500)
    method: HttpMethod = HttpMethod.POST
    content_type: ContentType = ContentType.JSON
    auth_type: AuthType = AuthType.NONE
    auth_token: str | None = None
    auth_username: str | None = None
    auth_password: str | None = None
    auth_header_name: str | None = None
    secret: str | None = None
    timeout: int = DEFAULT_TIMEOUT_SECONDS
    retry_attempts: int = DEFAULT_RETRY_ATTEMPTS
    retry_delay: int = DEFAULT_RETRY_DELAY_SECONDS
    enabled_events: list[str] = Field(default_factory=list)
    custom_headers: dict[str, str] = Field(default_factory=dict)
    payload_template: str | None = None
    is_enabled: bool = True


class WebhookCreate(WebhookBase):
    """Payload required to register a webhook."""


class WebhookUpdate(BaseModel):
    """Partial update; omitted fields keep their stored value."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = None
    url: str | None = Field(default=None, min_length=1, max_length=500)
    method: HttpMethod | None = None
    content_type: ContentType | None = None
    auth_type: AuthType | None = None
    auth_token: str | None = None
    auth_username: str | None = None
    auth_password: str | None = None
    auth_header_name: str | None = None
    secret: str | None = None
    timeout: int | None = None
    retry_attempts: int | None = None
    retry_delay: int | None = None
    enabled_events: list[str] | None = None
    custom_headers: dict[str, str] | None = None
    payload_template: str | None = None
    is_enabled: bool | None = None


class WebhookTestConfig(WebhookBase):
    """Unsaved configuration to send a test payload to."""

    name: str = Field(default="Test Webhook", min_length=1, max_length=100)
    template_id: str | None = Field(default=None, pattern="^(discord|teams|slack|generic)$")


class WebhookRead(BaseModel):
    """Webhook as returned by the API; secrets are never echoed back."""

    id: int
    name: str
    description: str | None = None
    url: str
    method: HttpMethod
    content_type: ContentType
    auth_type: str
    auth_header_name: str | None = None
    has_secret: bool
    timeout: int
    retry_attempts: int
    retry_delay: int
    enabled_events: list[str]
    custom_headers: dict[str, str]
    payload_template: str | None = None
    is_enabled: bool
    success_count: int
    failure_count: int
    last_triggered_at: datetime | None = None
    created_by: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class WebhookTestResultRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    success: bool
    latency_ms: float
    status_code: int | None = None
    error: str | None = None
    template: str | None = None
    template_error: str | None = None


__all__ = [
    "WebhookCreate",
    "WebhookUpdate",
    "WebhookTestConfig",
    "WebhookRead",
    "WebhookTestResultRead",
]
