"""Render outbound webhook payloads from user supplied templates."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Mapping
from urllib.parse import urlencode

from notification_engine.domain.entities import ContentType

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"\{\{\s*(\w+(?:\.\w+)*)\s*\}\}")
_MISSING = object()

TEST_EVENT_TYPE = "webhook.test"


@dataclass(frozen=True)
class RenderedPayload:
    """Body ready to be sent plus the reason a template was rejected, if any."""

    body: str
    template_error: str | None = None


def build_context(
    event_type: str, data: Mapping[str, Any], timestamp: datetime | str
) -> dict[str, Any]:
    """Return the variables available to payload templates."""

    if isinstance(timestamp, datetime):
        timestamp = timestamp.isoformat()
    return {"event": event_type, "timestamp": timestamp, "data": dict(data)}


def default_envelope(context: Mapping[str, Any], source: str) -> dict[str, Any]:
    return {
        "event": context.get("event"),
        "timestamp": context.get("timestamp"),
        "data": context.get("data") or {},
        "source": source,
    }


def encode_body(payload: Mapping[str, Any], content_type: ContentType | str) -> str:
    """Serialize ``payload`` for the wire according to ``content_type``."""

    if ContentType(content_type) is ContentType.FORM:
        fields = {
            key: value if isinstance(value, str) else _to_json(value)
            for key, value in payload.items()
        }
        return urlencode(fields)
    return _to_json(payload)


def render(
    template: str | None,
    context: Mapping[str, Any],
    content_type: ContentType | str = ContentType.JSON,
    *,
    source: str,
) -> RenderedPayload:
    """Render ``template`` with ``context`` or fall back to the default envelope.

    Placeholders such as ``{{event}}`` or ``{{data.message}}`` are replaced;
    unknown ones are kept verbatim. A JSON template that does not render to
    valid JSON is reported through ``template_error`` and never raised.
    """

    if not template or not template.strip():
        return RenderedPayload(encode_body(default_envelope(context, source), content_type))

    rendered = _PLACEHOLDER.sub(lambda match: _substitute(match, context), template)
    if ContentType(content_type) is not ContentType.JSON:
        return RenderedPayload(rendered)

    try:
        json.loads(rendered)
    except ValueError as exc:
        error = f"Payload template did not render valid JSON: {exc}"
        logger.warning("%s; falling back to the default payload", error)
        return RenderedPayload(
            encode_body(default_envelope(context, source), content_type),
            template_error=error,
        )
    return RenderedPayload(rendered)


def _substitute(match: re.Match[str], context: Mapping[str, Any]) -> str:
    value = _lookup(context, match.group(1))
    if value is _MISSING:
        return match.group(0)
    if isinstance(value, str):
        return value
    return _to_json(value)


def _lookup(context: Mapping[str, Any], path: str) -> Any:
    current: Any = context
    for part in path.split("."):
        if isinstance(current, Mapping) and part in current:
            current = current[part]
        else:
            return _MISSING
    return current


def _to_json(value: Any) -> str:
    return json.dumps(value, default=str, ensure_ascii=False)


def detect_template_from_url(url: str) -> str:
    """Guess the receiving service of ``url`` to pick a test payload preset."""

    if "discord.com/api/webhooks" in url or "discordapp.com/api/webhooks" in url:
        return "discord"
    if "webhook.office.com" in url:
        return "teams"
    if "hooks.slack.com/services" in url:
        return "slack"
    return "generic"


def _discord_payload(timestamp: str, source: str) -> dict[str, Any]:
    return {
        "username": source,
        "embeds": [
            {
                "title": "Webhook Test",
                "description": f"This is a test webhook from {source}",
                "color": 65535,
                "timestamp": timestamp,
                "footer": {"text": source},
                "fields": [
                    {"name": "Event Type", "value": TEST_EVENT_TYPE, "inline": True},
                    {"name": "Status", "value": "Connection successful", "inline": True},
                ],
            }
        ],
    }


def _teams_payload(timestamp: str, source: str) -> dict[str, Any]:
    return {
        "@type": "MessageCard",
        "@context": "http://schema.org/extensions",
        "themeColor": "0099ff",
        "summary": f"{source} Test Notification",
        "sections": [
            {
                "activityTitle": "Webhook Test",
                "activitySubtitle": source,
                "facts": [
                    {"name": "Event", "value": TEST_EVENT_TYPE},
                    {"name": "Status", "value": "Connection successful"},
                    {"name": "Timestamp", "value": timestamp},
                ],
                "markdown": True,
                "text": f"This is a test webhook from {source}. Your webhook is configured correctly!",
            }
        ],
    }


def _slack_payload(timestamp: str, source: str) -> dict[str, Any]:
    return {
        "username": source,
        "blocks": [
            {"type": "header", "text": {"type": "plain_text", "text": "Webhook Test"}},
            {
                "type": "section",
                "text": {
                    "type": "mrkdwn",
                    "text": f"This is a test webhook from {source}. Your webhook is configured correctly!",
                },
            },
            {
                "type": "context",
                "elements": [
                    {
                        "type": "mrkdwn",
                        "text": f"*Event:* {TEST_EVENT_TYPE} | *Time:* {timestamp} | *Status:* Success",
                    }
                ],
            },
        ],
    }


def _generic_payload(timestamp: str, source: str) -> dict[str, Any]:
    return {
        "event": TEST_EVENT_TYPE,
        "timestamp": timestamp,
        "data": {
            "message": f"This is a test webhook from {source}",
            "test_mode": True,
            "status": "success",
        },
        "source": source,
    }


TEST_PAYLOAD_PRESETS: Mapping[str, Callable[[str, str], dict[str, Any]]] = {
    "discord": _discord_payload,
    "teams": _teams_payload,
    "slack": _slack_payload,
    "generic": _generic_payload,
}


def preset_test_payload(template_id: str, *, timestamp: str, source: str) -> dict[str, Any]:
    """Return the preset test payload for ``template_id`` (generic when unknown)."""

    factory = TEST_PAYLOAD_PRESETS.get(template_id, _generic_payload)
    return factory(timestamp, source)


__all__ = [
    "RenderedPayload",
    "TEST_EVENT_TYPE",
    "TEST_PAYLOAD_PRESETS",
    "build_context",
    "default_envelope",
    "detect_template_from_url",
    "encode_body",
    "render",
    "preset_test_payload",
]
