"""Fixed-interval background jobs running on the application event loop."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable

from notification_engine.utils import isoformat_or_none, now_in_app_timezone

logger = logging.getLogger(__name__)

JobFunc = Callable[[], Awaitable[Any]]


@dataclass
class PeriodicJob:
    """Named coroutine executed every ``interval`` seconds."""

    name: str
    interval: float
    func: JobFunc
    run_count: int = 0
    error_count: int = 0
    last_run_at: datetime | None = None
    last_error: str | None = None
    task: asyncio.Task | None = field(default=None, repr=False)

    @property
    def running(self) -> bool:
        return self.task is not None and not self.task.done()


class PeriodicJobRunner:
    """Run registered jobs once immediately and then on their interval.

    A failing run is logged and never stops the job.
    """

    def __init__(self) -> None:
        self._jobs: dict[str, PeriodicJob] = {}

    def add_job(self, name: str, interval: float, func: JobFunc) -> PeriodicJob:
        if name in self._jobs:
            raise ValueError(f"Job '{name}' is already registered")
        if interval <= 0:
            raise ValueError("Job interval must be positive")
        job = PeriodicJob(name=name, interval=interval, func=func)
        self._jobs[name] = job
        return job

    def start(self) -> None:
        loop = asyncio.get_running_loop()
        for job in self._jobs.values():
            if job.running:
                continue
            job.task = loop.create_task(self._loop(job), name=f"periodic:{job.name}")
            logger.info("Started job '%s' every %ss", job.name, job.interval)

    async def stop(self) -> None:
        tasks = [job.task for job in self._jobs.values() if job.running]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        for job in self._jobs.values():
            job.task = None
        if tasks:
            logger.info("Stopped %s periodic job(s)", len(tasks))

    async def run_job(self, name: str) -> None:
        """Run ``name`` once outside its schedule."""

        try:
            job = self._jobs[name]
        except KeyError as exc:
            raise LookupError(f"Unknown job '{name}'") from exc
        await self._run(job)

    def status(self) -> list[dict[str, Any]]:
        return [
            {
                "name": job.name,
                "interval_seconds": job.interval,
                "running": job.running,
                "run_count": job.run_count,
                "error_count": job.error_count,
                "last_run_at": isoformat_or_none(job.last_run_at),
                "last_error": job.last_error,
            }
            for job in self._jobs.values()
        ]

    async def _loop(self, job: PeriodicJob) -> None:
        while True:
            await self._run(job)
            await asyncio.sleep(job.interval)

    async def _run(self, job: PeriodicJob) -> None:
        job.last_run_at = now_in_app_timezone()
        job.run_count += 1
        try:
            await job.func()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            job.error_count += 1
            job.last_error = str(exc) or exc.__class__.__name__
            logger.exception("Job '%s' failed", job.name)
        else:
            job.last_error = None


__all__ = ["PeriodicJob", "PeriodicJobRunner"]
