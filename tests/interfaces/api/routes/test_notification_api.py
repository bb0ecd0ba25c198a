"""Integration tests for the notification and webhook API endpoints."""

from __future__ import annotations

from datetime import timedelta

import pytest

pytest.importorskip("fastapi")
from fastapi.testclient import TestClient

from notification_engine.domain.entities import User
from notification_engine.infrastructure import database
from notification_engine.infrastructure.repositories import UserRepository
from notification_engine.infrastructure.security import create_access_token
from notification_engine.utils import now_in_app_timezone


@pytest.fixture()
def client():
    """Return a test client bound to a clean application instance."""

    database.Base.metadata.drop_all(bind=database.engine, checkfirst=True)
    database.initialize_database()

    from main import create_app

    with TestClient(create_app()) as test_client:
        yield test_client


def _seed_user(alias: str, email: str) -> int:
    session = database.SessionLocal()
    try:
        repository = UserRepository(session)
        role = repository.ensure_role(name=alias.title(), alias=alias)
        user = repository.create(
            User(id=None, role=role, name=email.split("@")[0], email=email, is_active=True)
        )
        return user.id
    finally:
        session.close()


def _headers(user_id: int) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token({'sub': str(user_id)})}"}


def _payload(**overrides) -> dict:
    payload = {
        "title": "Planned maintenance",
        "content": "The portal is offline on Sunday.",
        "notification_type": "warning",
        "target_audience": "all_users",
    }
    payload.update(overrides)
    return payload


def test_notification_inbox_flow(client: TestClient) -> None:
    admin_id = _seed_user("admin", "admin@example.com")
    user_id = _seed_user("user", "user@example.com")
    admin, user = _headers(admin_id), _headers(user_id)

    response = client.post(
        "/admin/notifications/",
        json=_payload(target_audience="individual_users", target_user_ids=[user_id]),
        headers=admin,
    )
    assert response.status_code == 201
    assert response.json()["count"] == 1

    inbox = client.get("/notifications/", headers=user)
    assert inbox.status_code == 200
    items = inbox.json()
    assert len(items) == 1
    assert items[0]["category"] == "admin"
    assert items[0]["priority"] == "normal"
    assert client.get("/notifications/unread-count", headers=user).json() == {"count": 1}

    single = client.get(f"/notifications/{items[0]['id']}", headers=user)
    assert single.status_code == 200
    assert single.json()["title"] == "Planned maintenance"
    assert client.get(f"/notifications/{items[0]['id']}", headers=admin).status_code == 404

    read = client.post(f"/notifications/{items[0]['id']}/read", headers=user)
    assert read.status_code == 200
    assert read.json()["is_read"] is True
    assert client.get("/notifications/unread-count", headers=user).json() == {"count": 0}

    track = client.post(
        f"/notifications/{items[0]['id']}/track",
        json={"action": "clicked", "action_url": "https://example.com/status"},
        headers=user,
    )
    assert track.status_code == 204
    assert client.post(
        f"/notifications/{items[0]['id']}/read", headers=admin
    ).status_code == 404

    analytics = client.get("/admin/notifications/analytics", headers=admin).json()
    assert analytics["total_sent"] == 1
    assert analytics["total_read"] == 1
    assert analytics["read_rate"] == 100
    assert analytics["click_rate"] == 100

    assert client.delete(f"/notifications/{items[0]['id']}", headers=user).status_code == 204
    assert client.get("/notifications/", headers=user).json() == []


def test_admin_endpoints_require_admin(client: TestClient) -> None:
    user_id = _seed_user("user", "user@example.com")

    assert client.post("/admin/notifications/", json=_payload(), headers=_headers(user_id)).status_code == 403
    assert client.get("/webhooks/", headers=_headers(user_id)).status_code == 403
    assert client.get("/notifications/").status_code == 401


def test_invalid_audiences_are_rejected(client: TestClient) -> None:
    admin = _headers(_seed_user("admin", "admin@example.com"))

    missing_roles = client.post(
        "/admin/notifications/", json=_payload(target_audience="specific_roles"), headers=admin
    )
    nobody = client.post(
        "/admin/notifications/",
        json=_payload(target_audience="specific_roles", target_roles=["auditor"]),
        headers=admin,
    )

    assert missing_roles.status_code == 400
    assert nobody.status_code == 400
    assert nobody.json()["detail"] == "No target users found for the specified audience"


def test_scheduled_notification_lifecycle(client: TestClient) -> None:
    admin_id = _seed_user("admin", "admin@example.com")
    user_id = _seed_user("user", "user@example.com")
    admin = _headers(admin_id)

    assert client.post("/admin/notifications/schedule", json=_payload(), headers=admin).status_code == 400

    future = (now_in_app_timezone() + timedelta(hours=2)).isoformat()
    past = (now_in_app_timezone() - timedelta(minutes=5)).isoformat()
    later_id = client.post(
        "/admin/notifications/schedule", json=_payload(scheduled_at=future), headers=admin
    ).json()["id"]
    due_id = client.post(
        "/admin/notifications/schedule",
        json=_payload(
            scheduled_at=past,
            target_audience="individual_users",
            target_user_ids=[user_id],
        ),
        headers=admin,
    ).json()["id"]

    page = client.get("/admin/notifications/scheduled?page=1&limit=10", headers=admin).json()
    assert page["total"] == 2
    assert {item["status"] for item in page["items"]} == {"pending"}

    run = client.post("/admin/notifications/process-scheduled", headers=admin)
    assert run.status_code == 200
    assert run.json()["sent"] == 1

    assert client.delete(f"/admin/notifications/scheduled/{later_id}", headers=admin).status_code == 204
    assert client.delete(f"/admin/notifications/scheduled/{later_id}", headers=admin).status_code == 409
    assert client.delete(f"/admin/notifications/scheduled/{due_id}", headers=admin).status_code == 409
    assert client.delete("/admin/notifications/scheduled/999", headers=admin).status_code == 404

    statuses = {
        item["id"]: item["status"]
        for item in client.get("/admin/notifications/scheduled", headers=admin).json()["items"]
    }
    assert statuses == {later_id: "cancelled", due_id: "sent"}

    jobs = client.get("/admin/notifications/jobs", headers=admin).json()
    assert {job["name"] for job in jobs} == {
        "process-scheduled-notifications",
        "expire-in-app-notifications",
    }


def test_webhook_crud_hides_secrets(client: TestClient) -> None:
    admin = _headers(_seed_user("admin", "admin@example.com"))

    created = client.post(
        "/webhooks/",
        json={
            "name": "Ops",
            "url": "https://hooks.example.com/ops",
            "auth_type": "bearer",
            "auth_token": "super-secret",
            "secret": "signing-key",
            "enabled_events": ["user.registered"],
        },
        headers=admin,
    )
    assert created.status_code == 201
    body = created.json()
    assert body["has_secret"] is True
    assert "auth_token" not in body
    assert "secret" not in body
    assert (body["success_count"], body["failure_count"]) == (0, 0)

    webhook_id = body["id"]
    updated = client.put(f"/webhooks/{webhook_id}", json={"retry_attempts": 1}, headers=admin)
    assert updated.status_code == 200
    assert updated.json()["retry_attempts"] == 1
    assert updated.json()["auth_type"] == "bearer"

    invalid = client.put(f"/webhooks/{webhook_id}", json={"url": "ftp://nope"}, headers=admin)
    assert invalid.status_code == 400

    assert client.delete(f"/webhooks/{webhook_id}", headers=admin).status_code == 204
    assert client.get(f"/webhooks/{webhook_id}", headers=admin).status_code == 404


def test_preference_endpoints(client: TestClient) -> None:
    user = _headers(_seed_user("user", "user@example.com"))

    overview = client.get("/notifications/preferences", headers=user).json()
    assert overview["matrix"]["IN_APP"]["system.announcement"] is True
    assert overview["explicit"] == []

    updated = client.put(
        "/notifications/preferences",
        json={
            "preferences": [
                {"channel": "IN_APP", "event_type": "system.announcement", "enabled": False}
            ]
        },
        headers=user,
    ).json()
    assert updated["matrix"]["IN_APP"]["system.announcement"] is False

    invalid = client.put(
        "/notifications/preferences/batch",
        json={"channel": "SLACK", "preferences": {"NotDotted": True}},
        headers=user,
    )
    assert invalid.status_code == 400

    summary = client.get("/notifications/preferences/summary", headers=user).json()
    assert summary["channels"]["IN_APP"]["enabled"] == 6

    reset = client.delete("/notifications/preferences", headers=user).json()
    assert reset["explicit"] == []
    assert reset["matrix"]["IN_APP"]["system.announcement"] is True


def test_notification_templates(client: TestClient) -> None:
    admin = _headers(_seed_user("admin", "admin@example.com"))
    user = _headers(_seed_user("user", "user@example.com"))
    template = {
        "name": "Maintenance notice",
        "event_type": "system.maintenance",
        "title": "Maintenance on {{date}}",
        "content": "The portal is offline on {{date}}.",
        "notification_type": "warning",
        "category": "maintenance",
        "variables": ["date"],
    }

    created = client.post("/admin/notifications/templates", json=template, headers=admin)
    assert created.status_code == 201
    body = created.json()
    assert body["is_active"] is True
    assert body["category"] == "maintenance"
    assert body["variables"] == ["date"]

    invalid = client.post(
        "/admin/notifications/templates", json={**template, "category": "billing"}, headers=admin
    )
    assert invalid.status_code == 422
    assert client.post("/admin/notifications/templates", json=template, headers=user).status_code == 403

    page = client.get("/admin/notifications/templates?page=1&limit=10", headers=admin).json()
    assert page["total"] == 1
    assert page["total_pages"] == 1
    assert [item["id"] for item in page["items"]] == [body["id"]]
