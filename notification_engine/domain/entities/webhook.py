"""Domain entities describing outbound webhook configurations."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class AuthType(str, Enum):
    """Authentication schemes supported for outbound webhooks."""

    NONE = "none"
    BEARER = "bearer"
    BASIC = "basic"
    API_KEY = "api_key"


class HttpMethod(str, Enum):
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"


class ContentType(str, Enum):
    JSON = "application/json"
    FORM = "application/x-www-form-urlencoded"


DEFAULT_TIMEOUT_SECONDS = 30
DEFAULT_RETRY_ATTEMPTS = 3
DEFAULT_RETRY_DELAY_SECONDS = 5


@dataclass(frozen=True)
class WebhookCredentials:
    """Secrets used by the configured authentication scheme."""

    token: str | None = None
    username: str | None = None
    password: str | None = None
    header_name: str | None = None


@dataclass
class WebhookConfiguration:
    """Endpoint that receives notifications for a set of event types.

    ``auth_type`` keeps the stored value even when it is not a known
    :class:`AuthType` so the delivery path can report the misconfiguration.
    """

    id: int | None
    name: str
    url: str
    description: str | None = None
    method: HttpMethod = HttpMethod.POST
    content_type: ContentType = ContentType.JSON
    auth_type: AuthType | str = AuthType.NONE
    credentials: WebhookCredentials = field(default_factory=WebhookCredentials)
    secret: str | None = None
    timeout: int = DEFAULT_TIMEOUT_SECONDS
    retry_attempts: int = DEFAULT_RETRY_ATTEMPTS
    retry_delay: int = DEFAULT_RETRY_DELAY_SECONDS
    enabled_events: list[str] = field(default_factory=list)
    custom_headers: dict[str, str] = field(default_factory=dict)
    payload_template: str | None = None
    is_enabled: bool = True
    success_count: int = 0
    failure_count: int = 0
    last_triggered_at: datetime | None = None
    created_by: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def subscribes_to(self, event_type: str) -> bool:
        """Return ``True`` when deliveries for ``event_type`` should be sent."""

        return self.is_enabled and event_type in self.enabled_events


__all__ = [
    "AuthType",
    "HttpMethod",
    "ContentType",
    "DEFAULT_TIMEOUT_SECONDS",
    "DEFAULT_RETRY_ATTEMPTS",
    "DEFAULT_RETRY_DELAY_SECONDS",
    "WebhookCredentials",
    "WebhookConfiguration",
]
