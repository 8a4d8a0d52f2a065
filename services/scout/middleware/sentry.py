"""
Sentry instrumentation for the scout API.

Outbound SerpApi calls carry the API key as a query parameter, so besides the
usual sensitive headers the before_send hook scrubs `api_key` from breadcrumb
URLs and the request query string.
"""

import re
from typing import Any

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

from services.scout.config import settings

SENSITIVE_HEADERS = {"authorization", "cookie", "set-cookie"}

_API_KEY_RE = re.compile(r"(api_key=)[^&\s]+", re.IGNORECASE)


def _scrub_url(value: Any) -> Any:
    if isinstance(value, str):
        return _API_KEY_RE.sub(r"\1[FILTERED]", value)
    return value


def _filter_headers(headers: Any) -> None:
    if isinstance(headers, dict):
        for key in list(headers.keys()):
            if key.lower() in SENSITIVE_HEADERS:
                headers[key] = "[FILTERED]"


def _strip_sensitive_data(event: dict[str, Any], hint: dict[str, Any]) -> dict[str, Any] | None:
    """before_send hook: filter auth headers and provider API keys."""
    if "breadcrumbs" in event:
        for breadcrumb in event["breadcrumbs"].get("values", []):
            data = breadcrumb.get("data", {})
            if isinstance(data, dict):
                _filter_headers(data.get("headers", {}))
                if "url" in data:
                    data["url"] = _scrub_url(data["url"])
                if "http.query" in data:
                    data["http.query"] = _scrub_url(data["http.query"])
    request = event.get("request", {})
    if isinstance(request, dict):
        _filter_headers(request.get("headers", {}))
        if "query_string" in request:
            request["query_string"] = _scrub_url(request["query_string"])
        if "url" in request:
            request["url"] = _scrub_url(request["url"])
    return event


def setup_sentry() -> None:
    if not settings.sentry_dsn:
        return

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.environment,
        release=f"{settings.app_name}@{settings.app_version}",
        traces_sample_rate=settings.sentry_traces_sample_rate,
        before_send=_strip_sensitive_data,
        integrations=[
            StarletteIntegration(transaction_style="endpoint"),
            FastApiIntegration(transaction_style="endpoint"),
        ],
        send_default_pii=False,
    )
