import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from notification_engine.application.use_cases.inbox import expire_notifications
from notification_engine.application.use_cases.notifications import (
    get_notification_scheduler,
)
from notification_engine.config import Settings, get_settings
from notification_engine.infrastructure.database import (
    SessionLocal,
    engine,
    initialize_database,
)
from notification_engine.infrastructure.scheduling import PeriodicJobRunner
from notification_engine.interfaces.api.routes import register_routes

logger = logging.getLogger(__name__)


async def _expire_in_app_notifications() -> None:
    session = SessionLocal()
    try:
        expire_notifications(session)
    finally:
        session.close()


def build_job_runner(settings: Settings) -> PeriodicJobRunner:
    """Register the background notification jobs."""

    runner = PeriodicJobRunner()
    runner.add_job(
        "process-scheduled-notifications",
        settings.scheduler_interval_seconds,
        get_notification_scheduler().run_once,
    )
    runner.add_job(
        "expire-in-app-notifications",
        settings.expiry_sweep_interval_seconds,
        _expire_in_app_notifications,
    )
    return runner


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Prepare the database, start the background jobs and stop them on shutdown."""

    settings = get_settings()
    initialize_database()
    get_notification_scheduler().recover_stale_claims()

    runner = build_job_runner(settings)
    app.state.job_runner = runner
    if settings.scheduler_enabled:
        runner.start()
    else:
        logger.info("Background notification jobs are disabled")
    try:
        yield
    finally:
        await runner.stop()
        engine.dispose()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(title="Notification Engine", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:4200"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_routes(app)
    return app


app = create_app()
