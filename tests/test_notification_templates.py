from dataclasses import replace

import pytest

from notification_engine.application.use_cases.notifications import (
    create_template,
    list_templates,
)
from notification_engine.domain.entities import (
    NotificationCategory,
    NotificationTemplate,
    NotificationType,
)
from notification_engine.domain.errors import NotificationValidationError
from notification_engine.infrastructure.repositories import NotificationTemplateRepository


def _template(**overrides) -> NotificationTemplate:
    values = {
        "id": None,
        "name": "  Maintenance notice  ",
        "event_type": "system.maintenance",
        "title": "Maintenance on {{date}}",
        "content": "The portal is offline on {{date}} from {{start}}.",
        "variables": ["date", "start", "date", " "],
    }
    values.update(overrides)
    return NotificationTemplate(**values)


def test_create_template_normalizes_and_records_author(db_session, make_user):
    admin = make_user(role="admin")

    created = create_template(db_session, _template(is_active=False, description=" "), admin.id)

    assert created.id is not None
    assert created.name == "Maintenance notice"
    assert created.description is None
    assert created.variables == ["date", "start"]
    assert created.notification_type is NotificationType.INFO
    assert created.category is NotificationCategory.SYSTEM
    assert created.is_active is True
    assert created.created_by == admin.id
    assert created.created_at is not None


@pytest.mark.parametrize(
    "overrides",
    [
        {"name": " "},
        {"name": "n" * 101},
        {"event_type": ""},
        {"event_type": "e" * 51},
        {"title": "t" * 201},
        {"content": "c" * 2001},
        {"description": "d" * 501},
        {"notification_type": "shout"},
        {"category": "billing"},
        {"variables": ["date", 3]},
    ],
)
def test_create_template_rejects_invalid_values(db_session, make_user, overrides):
    admin = make_user(role="admin")

    with pytest.raises(NotificationValidationError):
        create_template(db_session, _template(**overrides), admin.id)

    assert list_templates(db_session) == ([], 0)


def test_list_templates_returns_active_newest_first(db_session, make_user):
    admin = make_user(role="admin")
    first = create_template(db_session, _template(name="First"), admin.id)
    second = create_template(db_session, _template(name="Second"), admin.id)
    third = create_template(db_session, _template(name="Third"), admin.id)
    repository = NotificationTemplateRepository(db_session)
    repository.create(replace(_template(name="Retired"), is_active=False))

    page_one, total = list_templates(db_session, page=1, limit=2)
    page_two, _ = list_templates(db_session, page=2, limit=2)

    assert total == 3
    assert [item.id for item in page_one] == [third.id, second.id]
    assert [item.id for item in page_two] == [first.id]


@pytest.mark.parametrize("page, limit", [(0, 20), (1, 0), (1, 101)])
def test_list_templates_validates_pagination(db_session, page, limit):
    with pytest.raises(NotificationValidationError):
        list_templates(db_session, page=page, limit=limit)
