"""Build authentication headers for outbound webhook requests."""

from __future__ import annotations

import base64
from collections.abc import Mapping

from notification_engine.domain.entities import AuthType, WebhookCredentials
from notification_engine.domain.errors import WebhookConfigurationError


def _parse_auth_type(auth_type: AuthType | str | None) -> AuthType:
    if auth_type is None or auth_type == "":
        return AuthType.NONE
    try:
        return AuthType(auth_type)
    except ValueError as exc:
        raise WebhookConfigurationError(f"Unknown auth type '{auth_type}'") from exc


def auth_configuration_error(
    auth_type: AuthType | str | None, credentials: WebhookCredentials | None
) -> WebhookConfigurationError | None:
    """Describe why ``auth_type``/``credentials`` cannot produce auth headers."""

    try:
        parsed = _parse_auth_type(auth_type)
    except WebhookConfigurationError as exc:
        return exc

    credentials = credentials or WebhookCredentials()
    if parsed is AuthType.BEARER and not credentials.token:
        return WebhookConfigurationError("Bearer authentication requires a token")
    if parsed is AuthType.BASIC and not (credentials.username and credentials.password):
        return WebhookConfigurationError(
            "Basic authentication requires a username and a password"
        )
    if parsed is AuthType.API_KEY and not (credentials.header_name and credentials.token):
        return WebhookConfigurationError(
            "API key authentication requires a header name and a token"
        )
    return None


def build_auth_headers(
    auth_type: AuthType | str | None, credentials: WebhookCredentials | None = None
) -> dict[str, str]:
    """Return the headers authenticating a request for ``auth_type``.

    Misconfigured schemes produce no headers; use
    :func:`auth_configuration_error` to find out why.
    """

    if auth_configuration_error(auth_type, credentials) is not None:
        return {}

    credentials = credentials or WebhookCredentials()
    parsed = _parse_auth_type(auth_type)
    if parsed is AuthType.NONE:
        return {}
    if parsed is AuthType.BEARER:
        return {"Authorization": f"Bearer {credentials.token}"}
    if parsed is AuthType.BASIC:
        raw = f"{credentials.username}:{credentials.password}".encode("utf-8")
        return {"Authorization": f"Basic {base64.b64encode(raw).decode('ascii')}"}
    if parsed is AuthType.API_KEY:
        return {str(credentials.header_name): str(credentials.token)}
    raise AssertionError(f"Unhandled auth type: {parsed!r}")


def merge_headers(*layers: Mapping[str, str] | None) -> dict[str, str]:
    """Merge header mappings; later layers replace earlier keys case-insensitively."""

    merged: dict[str, str] = {}
    names: dict[str, str] = {}
    for layer in layers:
        for name, value in (layer or {}).items():
            previous = names.get(name.lower())
            if previous is not None:
                merged.pop(previous, None)
            names[name.lower()] = name
            merged[name] = str(value)
    return merged


__all__ = ["auth_configuration_error", "build_auth_headers", "merge_headers"]
