"""Bounded retry loop around :class:`WebhookDispatcher`."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Awaitable, Callable, Protocol

import anyio
import anyio.to_thread

from notification_engine.domain.entities import (
    DeliveryOutcome,
    DeliveryState,
    FinalOutcome,
    WebhookConfiguration,
)
from notification_engine.utils import now_in_app_timezone

from .auth import build_auth_headers

logger = logging.getLogger(__name__)


class Dispatcher(Protocol):
    async def deliver(
        self,
        config: WebhookConfiguration,
        body: str,
        auth_headers: dict[str, str],
        *,
        event_type: str,
    ) -> DeliveryOutcome: ...


class DeliveryCounters(Protocol):
    def record_delivery_result(
        self, webhook_id: int, *, success: bool, triggered_at: datetime
    ) -> None: ...


class RetryController:
    """Deliver a webhook with up to ``retry_attempts`` extra tries.

    The wait between tries is a fixed ``retry_delay`` and only suspends the
    task running this delivery. Counters are updated once per call, after
    the final attempt, on a worker thread bounded by ``limiter``.
    """

    def __init__(
        self,
        dispatcher: Dispatcher,
        counters: DeliveryCounters | None = None,
        *,
        sleep: Callable[[float], Awaitable[None]] = anyio.sleep,
        clock: Callable[[], datetime] = now_in_app_timezone,
        limiter: anyio.CapacityLimiter | None = None,
    ) -> None:
        self._dispatcher = dispatcher
        self._counters = counters
        self._sleep = sleep
        self._clock = clock
        self._limiter = limiter

    async def execute(
        self,
        config: WebhookConfiguration,
        body: str,
        *,
        event_type: str,
        template_error: str | None = None,
    ) -> FinalOutcome:
        auth_headers = build_auth_headers(config.auth_type, config.credentials)
        state = DeliveryState.start(max(config.retry_attempts, 0) + 1)

        while True:
            try:
                outcome = await self._dispatcher.deliver(
                    config, body, auth_headers, event_type=event_type
                )
            except Exception as exc:
                logger.exception("Dispatcher raised for webhook %s", config.id)
                outcome = DeliveryOutcome(
                    success=False, latency_ms=0.0, error=str(exc) or exc.__class__.__name__
                )
            state = state.advance(outcome)
            if state.is_final:
                break
            logger.warning(
                "Webhook %s attempt %s/%s failed: %s; retrying in %ss",
                config.id,
                state.attempt - 1,
                state.max_attempts,
                outcome.error,
                config.retry_delay,
            )
            await self._sleep(max(config.retry_delay, 0))

        final = FinalOutcome.from_state(config.id, state, template_error=template_error)
        if final.success:
            logger.info("Webhook %s delivered after %s attempt(s)", config.id, final.attempts)
        else:
            logger.error(
                "Webhook %s failed after %s attempt(s): %s",
                config.id,
                final.attempts,
                final.last_outcome.error if final.last_outcome else None,
            )
        await anyio.to_thread.run_sync(self._record, config, final, limiter=self._limiter)
        return final

    def _record(self, config: WebhookConfiguration, final: FinalOutcome) -> None:
        if self._counters is None or config.id is None:
            return
        self._counters.record_delivery_result(
            config.id, success=final.success, triggered_at=self._clock()
        )


__all__ = ["RetryController", "Dispatcher", "DeliveryCounters"]
