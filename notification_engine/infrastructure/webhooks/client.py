"""Send a single outbound webhook request and classify the result."""

from __future__ import annotations

import hashlib
import hmac
import logging
import time
from collections.abc import Mapping
from time import perf_counter
from typing import Callable

import httpx

from notification_engine.domain.entities import (
    ContentType,
    DeliveryOutcome,
    HttpMethod,
    WebhookConfiguration,
)

from .auth import auth_configuration_error, merge_headers

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "Notification-Engine-Webhook/1.0"


def sign_body(secret: str, body: str) -> str:
    """Return the ``X-Webhook-Signature`` value for ``body``."""

    digest = hmac.new(secret.encode("utf-8"), body.encode("utf-8"), hashlib.sha256)
    return f"sha256={digest.hexdigest()}"


class WebhookDispatcher:
    """Perform one HTTP attempt for a webhook configuration.

    The dispatcher never touches delivery counters; :class:`RetryController`
    owns them.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        user_agent: str = DEFAULT_USER_AGENT,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._client = client
        self._user_agent = user_agent
        self._clock = clock

    def build_headers(
        self,
        config: WebhookConfiguration,
        body: str,
        auth_headers: Mapping[str, str],
        *,
        event_type: str,
    ) -> dict[str, str]:
        engine_headers = {
            "Content-Type": ContentType(config.content_type).value,
            "User-Agent": self._user_agent,
            "X-Webhook-Event": event_type,
            "X-Webhook-Timestamp": str(int(self._clock())),
        }
        if config.secret:
            engine_headers["X-Webhook-Signature"] = sign_body(config.secret, body)
        return merge_headers(engine_headers, config.custom_headers, auth_headers)

    async def deliver(
        self,
        config: WebhookConfiguration,
        body: str,
        auth_headers: Mapping[str, str],
        *,
        event_type: str,
    ) -> DeliveryOutcome:
        """Send ``body`` to ``config.url`` once and report what happened."""

        auth_error = auth_configuration_error(config.auth_type, config.credentials)
        configuration_error = str(auth_error) if auth_error else None
        if configuration_error:
            logger.warning(
                "Webhook %s has an invalid auth configuration: %s",
                config.id,
                configuration_error,
            )

        if not config.url:
            logger.warning("Webhook %s has no URL configured", config.id)
            return DeliveryOutcome(
                success=False,
                latency_ms=0.0,
                error="Webhook URL is not configured",
                configuration_error="Webhook URL is not configured",
            )

        started = perf_counter()
        try:
            headers = self.build_headers(config, body, auth_headers, event_type=event_type)
            response = await self._send(config, body, headers)
        except httpx.TimeoutException as exc:
            return DeliveryOutcome(
                success=False,
                latency_ms=_elapsed_ms(started),
                error=f"Timed out after {config.timeout}s: {exc}",
                timed_out=True,
                configuration_error=configuration_error,
            )
        except httpx.HTTPError as exc:
            return DeliveryOutcome(
                success=False,
                latency_ms=_elapsed_ms(started),
                error=str(exc) or exc.__class__.__name__,
                configuration_error=configuration_error,
            )
        except Exception as exc:
            # InvalidURL and friends are not HTTPError subclasses.
            logger.warning("Webhook %s request could not be sent: %r", config.id, exc)
            return DeliveryOutcome(
                success=False,
                latency_ms=_elapsed_ms(started),
                error=str(exc) or exc.__class__.__name__,
                configuration_error=configuration_error,
            )

        latency_ms = _elapsed_ms(started)
        if response.is_success:
            return DeliveryOutcome(
                success=True,
                latency_ms=latency_ms,
                status_code=response.status_code,
                configuration_error=configuration_error,
            )
        return DeliveryOutcome(
            success=False,
            latency_ms=latency_ms,
            status_code=response.status_code,
            error=f"Webhook failed: {response.status_code} {response.reason_phrase}".strip(),
            configuration_error=configuration_error,
        )

    async def _send(
        self, config: WebhookConfiguration, body: str, headers: dict[str, str]
    ) -> httpx.Response:
        method = HttpMethod(config.method).value
        if self._client is not None:
            return await self._client.request(
                method, config.url, content=body, headers=headers, timeout=config.timeout
            )
        async with httpx.AsyncClient(timeout=config.timeout) as client:
            return await client.request(method, config.url, content=body, headers=headers)


def _elapsed_ms(started: float) -> float:
    return round((perf_counter() - started) * 1000, 2)


__all__ = ["DEFAULT_USER_AGENT", "WebhookDispatcher", "sign_body"]
