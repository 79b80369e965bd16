"""HTTP client with explicit TLS, redirect and retry configuration."""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from types import TracebackType
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from tenacity import (
    retry,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    wait_exponential_jitter,
)

from datasources.common.constants import USER_AGENT

RETRYABLE_STATUS_CODES = {408, 425, 429, 500, 502, 503, 504}


@dataclass(frozen=True)
class TimeoutConfig:
    connect: float = 20.0
    read: float = 120.0


@dataclass(frozen=True)
class RetryConfig:
    # One attempt: retry/backoff policy belongs to the caller.
    max_attempts: int = 1
    multiplier: float = 1.0
    max_wait: float = 30.0


@dataclass(frozen=True)
class HttpConfig:
    """Transport settings for upstream map services.

    Certificate and hostname verification are both off by default.
    """

    verify_tls: bool = False
    verify_hostname: bool = False
    follow_redirects: bool = True
    accept_encoding: str = "gzip"
    accept_charset: str = "utf-8"
    timeout: TimeoutConfig | None = None


@dataclass(frozen=True)
class HttpResponse:
    url: str
    status_code: int
    text: str
    duration_ms: int = 0

    def json(self) -> Any:
        return json.loads(self.text)


class _NoHostnameCheckAdapter(HTTPAdapter):
    """Verifies certificates against the CA bundle but skips hostname matching."""

    def init_poolmanager(self, *args, **kwargs) -> None:
        kwargs["assert_hostname"] = False
        super().init_poolmanager(*args, **kwargs)


def _is_retryable_response(response: HttpResponse) -> bool:
    return response.status_code in RETRYABLE_STATUS_CODES


def _last_outcome(retry_state) -> HttpResponse:
    return retry_state.outcome.result()


class HttpClient:
    def __init__(
        self,
        *,
        config: HttpConfig | None = None,
        retry: RetryConfig | None = None,
    ) -> None:
        self.config = config or HttpConfig()
        self.retry = retry or RetryConfig()
        self.session = requests.Session()
        self.session.verify = self.config.verify_tls
        if self.config.verify_tls and not self.config.verify_hostname:
            self.session.mount("https://", _NoHostnameCheckAdapter())

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _headers(self, headers: dict[str, str] | None) -> dict[str, str]:
        out = {
            "User-Agent": USER_AGENT,
            "Accept": "application/json",
            "Accept-Encoding": self.config.accept_encoding,
            "Accept-Charset": self.config.accept_charset,
        }
        if headers:
            out.update(headers)
        return out

    def _timeout(self) -> tuple[float, float] | None:
        if self.config.timeout is None:
            return None
        return (self.config.timeout.connect, self.config.timeout.read)

    def _get(self, url: str, headers: dict[str, str] | None) -> HttpResponse:
        started = time.monotonic()
        response = self.session.request(
            method="GET",
            url=url,
            headers=self._headers(headers),
            timeout=self._timeout(),
            allow_redirects=self.config.follow_redirects,
        )
        return HttpResponse(
            url=url,
            status_code=response.status_code,
            text=response.text,
            duration_ms=int((time.monotonic() - started) * 1000),
        )

    def get(self, url: str, *, headers: dict[str, str] | None = None) -> HttpResponse:
        """Issue a GET and return the final response, whatever its status.

        Retryable statuses and connection failures are retried only when
        ``RetryConfig.max_attempts`` is above one. Once attempts run out the
        last response is returned, and the last transport exception re-raised.
        """

        @retry(
            stop=stop_after_attempt(self.retry.max_attempts),
            wait=wait_exponential_jitter(
                initial=self.retry.multiplier,
                max=self.retry.max_wait,
                jitter=1.0,
            ),
            retry=(
                retry_if_result(_is_retryable_response)
                | retry_if_exception_type((requests.ConnectionError, requests.Timeout))
            ),
            retry_error_callback=_last_outcome,
        )
        def _wrapped() -> HttpResponse:
            return self._get(url, headers)

        return _wrapped()
