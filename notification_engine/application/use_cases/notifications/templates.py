"""Use cases managing reusable notification templates."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import replace

from sqlalchemy.orm import Session

from notification_engine.domain.entities import (
    NotificationCategory,
    NotificationTemplate,
    NotificationType,
)
from notification_engine.domain.errors import NotificationValidationError
from notification_engine.infrastructure.repositories import NotificationTemplateRepository

from .admin import MAX_PAGE_SIZE

logger = logging.getLogger(__name__)

# Field name, label and maximum length of the required text fields.
_REQUIRED_FIELDS = (
    ("name", "Name", 100),
    ("event_type", "Event type", 50),
    ("title", "Title", 200),
    ("content", "Content", 2000),
)
MAX_DESCRIPTION_LENGTH = 500


def validate_template(template: NotificationTemplate) -> NotificationTemplate:
    """Normalize ``template`` or raise :class:`NotificationValidationError`."""

    values: dict[str, str] = {}
    for attribute, label, max_length in _REQUIRED_FIELDS:
        value = (getattr(template, attribute) or "").strip()
        if not value:
            raise NotificationValidationError(f"{label} is required")
        if len(value) > max_length:
            raise NotificationValidationError(
                f"{label} must be at most {max_length} characters"
            )
        values[attribute] = value

    description = (template.description or "").strip() or None
    if description and len(description) > MAX_DESCRIPTION_LENGTH:
        raise NotificationValidationError(
            f"Description must be at most {MAX_DESCRIPTION_LENGTH} characters"
        )
    try:
        notification_type = NotificationType(template.notification_type)
    except ValueError as exc:
        raise NotificationValidationError(
            f"Invalid notification type: {template.notification_type}"
        ) from exc
    try:
        category = NotificationCategory(template.category)
    except ValueError as exc:
        raise NotificationValidationError(
            f"Invalid notification category: {template.category}"
        ) from exc
    if any(not isinstance(variable, str) for variable in template.variables or []):
        raise NotificationValidationError("Template variables must be strings")
    variables = list(
        dict.fromkeys(variable.strip() for variable in template.variables or [] if variable.strip())
    )

    return replace(
        template,
        description=description,
        notification_type=notification_type,
        category=category,
        variables=variables,
        **values,
    )


def create_template(
    session: Session, template: NotificationTemplate, actor_id: int
) -> NotificationTemplate:
    validated = validate_template(
        replace(template, id=None, is_active=True, created_by=actor_id, created_at=None)
    )
    created = NotificationTemplateRepository(session).create(validated)
    logger.info("Notification template %s (%s) created by user %s", created.id, created.name, actor_id)
    return created


def list_templates(
    session: Session, *, page: int = 1, limit: int = 20
) -> tuple[Sequence[NotificationTemplate], int]:
    """Return one page of active templates, newest first, and the total count."""

    if page < 1:
        raise NotificationValidationError("Page must be greater than zero")
    if limit < 1 or limit > MAX_PAGE_SIZE:
        raise NotificationValidationError(f"Limit must be between 1 and {MAX_PAGE_SIZE}")
    return NotificationTemplateRepository(session).list_active(page=page, limit=limit)


__all__ = ["validate_template", "create_template", "list_templates"]
