"""Shared request and payload checks for ArcGIS REST calls."""

from __future__ import annotations

import logging
from typing import Any

import requests

from datasources.common.constants import DATASOURCE_NAME
from datasources.common.errors import DataDownloadError, ResponseError
from datasources.common.http import HttpResponse
from datasources.common.logging import log_event

logger = logging.getLogger(__name__)


def get_response(client, url: str, *, operation: str, log: logging.Logger | None = None) -> HttpResponse:
    """GET ``url`` and fail with DataDownloadError on anything but HTTP 200."""
    log = log or logger
    try:
        response = client.get(url)
    except requests.RequestException as exc:
        log_event(
            log,
            f"transport failure for {url}",
            operation=operation,
            source=DATASOURCE_NAME,
            event="HTTP_REQUEST",
            status="error",
            url=url,
            error_code=DataDownloadError.error_code,
        )
        raise DataDownloadError(url, None, str(exc)) from exc

    status_code = response.status_code
    log_event(
        log,
        f"GET {url}",
        operation=operation,
        source=DATASOURCE_NAME,
        event="HTTP_REQUEST",
        status="ok" if status_code == 200 else "error",
        url=url,
        status_code=status_code,
        duration_ms=getattr(response, "duration_ms", None),
    )
    if status_code != 200:
        raise DataDownloadError(url, status_code, response.text)
    return response


def parse_payload(response: HttpResponse) -> dict[str, Any]:
    """Decode a JSON object body, normalizing every top-level key to ``str``."""
    try:
        payload = response.json()
    except ValueError as exc:
        raise ResponseError(f"Invalid JSON payload from {response.url}", url=response.url) from exc

    if not isinstance(payload, dict):
        raise ResponseError(f"Expected a JSON object from {response.url}", url=response.url)

    payload = {str(key): value for key, value in payload.items()}
    if "error" in payload:
        raise ResponseError(
            f"ArcGIS request failed for {response.url}: {payload['error']}",
            url=response.url,
            upstream_error=payload["error"],
        )
    return payload


def require_keys(payload: dict[str, Any], keys: list[str], url: str) -> None:
    missing = [key for key in keys if key not in payload]
    if missing:
        missing_str = ", ".join(f"'{key}'" for key in missing)
        raise ResponseError(f"Missing data: {missing_str}", url=url, missing=missing)
