"""Process scheduled notifications once they are due."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache, partial
from typing import Awaitable, Callable

import anyio
import anyio.to_thread
from sqlalchemy.orm import Session

from notification_engine.domain.entities import ScheduledNotification
from notification_engine.infrastructure.database import SessionLocal
from notification_engine.infrastructure.repositories import ScheduledNotificationRepository
from notification_engine.infrastructure.webhooks.retry import Dispatcher
from notification_engine.utils import now_in_app_timezone

from .fanout import NotificationFanout

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SchedulerRunReport:
    """Summary of one scan over due scheduled notifications."""

    due: int = 0
    sent: int = 0
    failed: int = 0
    lost_claims: int = 0
    skipped: bool = False


class NotificationScheduler:
    """Scan due ``pending`` rows and deliver them.

    Only one scan runs at a time per instance; a call made while a scan is in
    progress returns a report with ``skipped`` set.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        *,
        dispatcher: Dispatcher | None = None,
        sleep: Callable[[float], Awaitable[None]] = anyio.sleep,
        clock: Callable[[], datetime] = now_in_app_timezone,
    ) -> None:
        self._session_factory = session_factory
        self._dispatcher = dispatcher
        self._sleep = sleep
        self._clock = clock
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def recover_stale_claims(self) -> int:
        """Return rows a crashed scan left in ``processing`` to ``pending``."""

        session = self._session_factory()
        try:
            released = ScheduledNotificationRepository(session).release_stale_claims()
        finally:
            session.close()
        if released:
            logger.warning(
                "Returned %s scheduled notification(s) left in processing to pending",
                released,
            )
        return released

    async def run_once(self) -> SchedulerRunReport:
        if self._running:
            logger.info("Scheduled notification scan already running; skipping")
            return SchedulerRunReport(skipped=True)

        self._running = True
        session = self._session_factory()
        try:
            return await self._scan(session)
        finally:
            session.close()
            self._running = False

    async def _scan(self, session: Session) -> SchedulerRunReport:
        repository = ScheduledNotificationRepository(session)
        due = await anyio.to_thread.run_sync(repository.list_due, self._clock())
        sent = failed = lost = 0
        for scheduled in due:
            if not await anyio.to_thread.run_sync(repository.claim, scheduled.id):
                lost += 1
                logger.info(
                    "Scheduled notification %s was claimed or cancelled elsewhere", scheduled.id
                )
                continue
            if await self._process(session, repository, scheduled):
                sent += 1
            else:
                failed += 1

        if due:
            logger.info(
                "Processed %s due scheduled notification(s): %s sent, %s failed, %s skipped",
                len(due),
                sent,
                failed,
                lost,
            )
        return SchedulerRunReport(due=len(due), sent=sent, failed=failed, lost_claims=lost)

    async def _process(
        self,
        session: Session,
        repository: ScheduledNotificationRepository,
        scheduled: ScheduledNotification,
    ) -> bool:
        try:
            fanout = NotificationFanout(session, dispatcher=self._dispatcher, sleep=self._sleep)
            report = await fanout.dispatch(
                scheduled.request,
                actor_id=scheduled.created_by,
                scheduled_notification_id=scheduled.id,
            )
        except Exception:
            logger.exception("Failed to process scheduled notification %s", scheduled.id)
            await anyio.to_thread.run_sync(session.rollback)
            await anyio.to_thread.run_sync(repository.mark_failed, scheduled.id)
            return False

        if report.any_delivered:
            mark_sent = partial(
                repository.mark_sent,
                scheduled.id,
                sent_count=report.delivered_count,
                sent_at=self._clock(),
            )
            await anyio.to_thread.run_sync(mark_sent)
            return True

        logger.warning(
            "Scheduled notification %s reached no recipient or webhook", scheduled.id
        )
        await anyio.to_thread.run_sync(repository.mark_failed, scheduled.id)
        return False


@lru_cache
def get_notification_scheduler() -> NotificationScheduler:
    """Return the process-wide scheduler shared by the API and periodic jobs."""

    return NotificationScheduler()


async def process_scheduled_notifications() -> SchedulerRunReport:
    return await get_notification_scheduler().run_once()


__all__ = [
    "SchedulerRunReport",
    "NotificationScheduler",
    "get_notification_scheduler",
    "process_scheduled_notifications",
]
