"""Shared fixtures for the notification engine tests."""

from __future__ import annotations

import os
import sys
import tempfile
from itertools import count
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

TEST_DB_PATH = Path(tempfile.gettempdir()) / "notification_engine_test_api.db"
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_PATH}"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["APP_TIMEZONE"] = "UTC"
os.environ["SCHEDULER_ENABLED"] = "false"

from notification_engine.config import reset_settings_cache  # noqa: E402

reset_settings_cache()

from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from notification_engine.domain.entities import (  # noqa: E402
    DeliveryOutcome,
    User,
    WebhookConfiguration,
)
from notification_engine.infrastructure import models  # noqa: E402,F401
from notification_engine.infrastructure.database import Base  # noqa: E402
from notification_engine.infrastructure.repositories import (  # noqa: E402
    UserRepository,
    WebhookRepository,
)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def engine():
    """In-memory SQLite engine shared by every session of a test."""

    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db_session):
    """Return a helper inserting users with the requested role."""

    sequence = count(1)

    def _make_user(
        user_id: int | None = None,
        *,
        role: str = "user",
        is_active: bool = True,
    ) -> User:
        number = next(sequence)
        repository = UserRepository(db_session)
        role_entity = repository.ensure_role(name=role.title(), alias=role)
        return repository.create(
            User(
                id=user_id,
                role=role_entity,
                name=f"User {number}",
                email=f"user{number}@example.com",
                is_active=is_active,
            )
        )

    return _make_user


@pytest.fixture
def make_webhook(db_session):
    """Return a helper persisting webhook configurations."""

    def _make_webhook(**overrides) -> WebhookConfiguration:
        values = {
            "id": None,
            "name": "Ops channel",
            "url": "https://hooks.example.com/ops",
            "enabled_events": ["system.announcement"],
            "retry_delay": 1,
        }
        values.update(overrides)
        return WebhookRepository(db_session).create(WebhookConfiguration(**values))

    return _make_webhook


class RecordingDispatcher:
    """Dispatcher double returning scripted outcomes and recording every call."""

    def __init__(self, *outcomes: DeliveryOutcome) -> None:
        self._outcomes = list(outcomes) or [
            DeliveryOutcome(success=True, latency_ms=1.0, status_code=200)
        ]
        self.calls: list[dict] = []

    async def deliver(
        self,
        config: WebhookConfiguration,
        body: str,
        auth_headers: dict[str, str],
        *,
        event_type: str,
    ) -> DeliveryOutcome:
        self.calls.append(
            {
                "webhook_id": config.id,
                "body": body,
                "auth_headers": dict(auth_headers),
                "event_type": event_type,
            }
        )
        index = min(len(self.calls), len(self._outcomes)) - 1
        return self._outcomes[index]


@pytest.fixture
def make_dispatcher():
    return RecordingDispatcher


@pytest.fixture
def no_sleep():
    async def _sleep(seconds: float) -> None:
        return None

    return _sleep


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def recording_sleep(sleeps):
    async def _sleep(seconds: float) -> None:
        sleeps.append(seconds)

    return _sleep
