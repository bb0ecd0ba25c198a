"""Expand one notification request into in-app records and webhook deliveries."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Awaitable, Callable, TypeVar

import anyio
import anyio.to_thread
from sqlalchemy.orm import Session

from notification_engine.config import get_settings
from notification_engine.domain.entities import (
    AnalyticsAction,
    DeliveryOutcome,
    FinalOutcome,
    InAppNotification,
    NotificationAnalyticsEvent,
    NotificationCategory,
    NotificationChannel,
    NotificationPriority,
    NotificationRequest,
    WebhookConfiguration,
)
from notification_engine.domain.errors import NotificationValidationError
from notification_engine.infrastructure.repositories import (
    InAppNotificationRepository,
    WebhookRepository,
)
from notification_engine.infrastructure.webhooks import (
    RetryController,
    WebhookDispatcher,
    build_context,
    render,
)
from notification_engine.infrastructure.webhooks.retry import Dispatcher
from notification_engine.utils import isoformat_or_none, now_in_app_timezone

from ..analytics import record_events
from ..audience import resolve_audience
from ..preferences import users_with_enabled

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class FanoutReport:
    """What a single fan-out produced."""

    recipients: frozenset[int]
    in_app: Sequence[InAppNotification] = field(default_factory=tuple)
    webhooks: Sequence[FinalOutcome] = field(default_factory=tuple)

    @property
    def in_app_ids(self) -> list[int]:
        return [record.id for record in self.in_app if record.id is not None]

    @property
    def delivered_count(self) -> int:
        return len(self.in_app) + sum(1 for outcome in self.webhooks if outcome.success)

    @property
    def any_delivered(self) -> bool:
        return self.delivered_count > 0


class NotificationFanout:
    """Deliver a request to every resolved recipient and subscribed webhook.

    In-app records are written in one batch; webhook deliveries run
    concurrently, bounded by ``max_concurrency``. Database work runs on
    worker threads, one call at a time, since the session is shared.
    """

    def __init__(
        self,
        session: Session,
        *,
        dispatcher: Dispatcher | None = None,
        sleep: Callable[[float], Awaitable[None]] = anyio.sleep,
        max_concurrency: int | None = None,
        source: str | None = None,
    ) -> None:
        settings = get_settings()
        self.session = session
        self._dispatcher = dispatcher or WebhookDispatcher(
            user_agent=settings.webhook_user_agent
        )
        self._sleep = sleep
        self._max_concurrency = max_concurrency or settings.dispatch_max_concurrency
        self._source = source or settings.webhook_source_name

    async def dispatch(
        self,
        request: NotificationRequest,
        *,
        actor_id: int | None,
        scheduled_notification_id: int | None = None,
        require_recipients: bool = False,
    ) -> FanoutReport:
        db_limiter = anyio.CapacityLimiter(1)
        recipients = await _in_worker(
            db_limiter, resolve_audience, self.session, request.audience
        )
        if require_recipients and not recipients:
            raise NotificationValidationError(
                "No target users found for the specified audience"
            )
        in_app = await _in_worker(
            db_limiter,
            self._create_in_app_records,
            request,
            recipients,
            actor_id=actor_id,
            scheduled_notification_id=scheduled_notification_id,
        )
        webhooks = await self._deliver_webhooks(
            request,
            recipient_count=len(recipients),
            scheduled_notification_id=scheduled_notification_id,
            db_limiter=db_limiter,
        )
        logger.info(
            "Fan-out of '%s' (%s): %s recipient(s), %s in-app record(s), %s/%s webhook(s) delivered",
            request.title,
            request.event_type,
            len(recipients),
            len(in_app),
            sum(1 for outcome in webhooks if outcome.success),
            len(webhooks),
        )
        return FanoutReport(
            recipients=frozenset(recipients), in_app=in_app, webhooks=webhooks
        )

    def _create_in_app_records(
        self,
        request: NotificationRequest,
        recipients: set[int],
        *,
        actor_id: int | None,
        scheduled_notification_id: int | None,
    ) -> list[InAppNotification]:
        if not recipients:
            return []
        enabled = users_with_enabled(self.session, NotificationChannel.IN_APP, request.event_type)
        targets = sorted(recipients & enabled)
        skipped = len(recipients) - len(targets)
        if skipped:
            logger.debug(
                "Skipping %s recipient(s) without in-app delivery for %s",
                skipped,
                request.event_type,
            )
        if not targets:
            return []

        now = now_in_app_timezone()
        priority = NotificationPriority.for_type(request.notification_type)
        created = InAppNotificationRepository(self.session).create_many(
            InAppNotification(
                id=None,
                user_id=user_id,
                title=request.title,
                content=request.content,
                event_type=request.event_type,
                notification_type=request.notification_type,
                priority=priority,
                category=NotificationCategory.ADMIN,
                action_url=request.action_url,
                metadata=dict(request.metadata),
                expires_at=request.expires_at,
                created_by=actor_id,
                created_at=now,
                scheduled_notification_id=scheduled_notification_id,
            )
            for user_id in targets
        )
        record_events(
            self.session,
            [
                NotificationAnalyticsEvent(
                    id=None,
                    user_id=record.user_id,
                    event_type=record.event_type,
                    action=AnalyticsAction.DELIVERED,
                    notification_id=record.id,
                    scheduled_notification_id=scheduled_notification_id,
                    timestamp=now,
                )
                for record in created
            ],
        )
        return created

    async def _deliver_webhooks(
        self,
        request: NotificationRequest,
        *,
        recipient_count: int,
        scheduled_notification_id: int | None,
        db_limiter: anyio.CapacityLimiter,
    ) -> list[FinalOutcome]:
        configurations = await _in_worker(
            db_limiter, WebhookRepository(self.session).list_for_event, request.event_type
        )
        if not configurations:
            return []

        context = build_context(
            request.event_type,
            _webhook_data(request, recipient_count, scheduled_notification_id),
            now_in_app_timezone(),
        )
        controller = RetryController(
            self._dispatcher,
            WebhookRepository(self.session),
            sleep=self._sleep,
            limiter=db_limiter,
        )
        limiter = anyio.CapacityLimiter(self._max_concurrency)
        outcomes: dict[int, FinalOutcome] = {}

        async def deliver(index: int, config: WebhookConfiguration) -> None:
            async with limiter:
                try:
                    rendered = render(
                        config.payload_template,
                        context,
                        config.content_type,
                        source=self._source,
                    )
                    outcomes[index] = await controller.execute(
                        config,
                        rendered.body,
                        event_type=request.event_type,
                        template_error=rendered.template_error,
                    )
                except Exception as exc:
                    # One broken webhook must not cancel its siblings.
                    logger.exception("Delivery to webhook %s raised", config.id)
                    outcomes[index] = _failed_outcome(config, exc)

        async with anyio.create_task_group() as task_group:
            for index, config in enumerate(configurations):
                task_group.start_soon(deliver, index, config)

        return [outcomes[index] for index in sorted(outcomes)]


async def _in_worker(
    limiter: anyio.CapacityLimiter, func: Callable[..., T], *args: Any, **kwargs: Any
) -> T:
    return await anyio.to_thread.run_sync(partial(func, *args, **kwargs), limiter=limiter)


def _failed_outcome(config: WebhookConfiguration, exc: Exception) -> FinalOutcome:
    return FinalOutcome(
        webhook_id=config.id,
        success=False,
        attempts=0,
        timeouts=0,
        last_outcome=DeliveryOutcome(
            success=False, latency_ms=0.0, error=str(exc) or exc.__class__.__name__
        ),
    )


def _webhook_data(
    request: NotificationRequest,
    recipient_count: int,
    scheduled_notification_id: int | None,
) -> dict[str, Any]:
    return {
        "title": request.title,
        "message": request.content,
        "notification_type": request.notification_type.value,
        "action_url": request.action_url,
        "expires_at": isoformat_or_none(request.expires_at),
        "metadata": dict(request.metadata),
        "recipient_count": recipient_count,
        "scheduled_notification_id": scheduled_notification_id,
    }


__all__ = ["FanoutReport", "NotificationFanout"]
