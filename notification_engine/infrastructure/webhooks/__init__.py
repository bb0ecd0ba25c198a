"""Outbound webhook delivery: rendering, authentication, dispatch and retries."""

from .auth import auth_configuration_error, build_auth_headers, merge_headers
from .client import WebhookDispatcher, sign_body
from .retry import RetryController
from .templates import (
    RenderedPayload,
    build_context,
    detect_template_from_url,
    encode_body,
    preset_test_payload,
    render,
)

__all__ = [
    "auth_configuration_error",
    "build_auth_headers",
    "merge_headers",
    "WebhookDispatcher",
    "sign_body",
    "RetryController",
    "RenderedPayload",
    "build_context",
    "detect_template_from_url",
    "encode_body",
    "preset_test_payload",
    "render",
]
