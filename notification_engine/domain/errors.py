"""Exceptions raised by the notification engine use cases."""

from __future__ import annotations


class NotificationError(Exception):
    """Base class for every error raised by the engine."""


class NotificationValidationError(NotificationError, ValueError):
    """Raised when a request is malformed; no side effect has happened yet."""


class InvalidStateTransitionError(NotificationValidationError):
    """Raised when a status change is not allowed from the current state."""

    def __init__(self, entity_id: int, current: str, target: str) -> None:
        super().__init__(
            f"Cannot move notification {entity_id} from '{current}' to '{target}'"
        )
        self.entity_id = entity_id
        self.current = current
        self.target = target


class NotFoundError(NotificationError, LookupError):
    """Raised when a referenced record does not exist."""


class WebhookConfigurationError(NotificationError):
    """Describes a stored webhook configuration that cannot be honored as-is.

    Delivery is still attempted in a degraded form; the error is reported on
    the outcome instead of being raised.
    """


__all__ = [
    "NotificationError",
    "NotificationValidationError",
    "InvalidStateTransitionError",
    "NotFoundError",
    "WebhookConfigurationError",
]
