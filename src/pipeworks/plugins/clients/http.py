# src/pipeworks/plugins/clients/http.py
"""HTTP client used by source and webhook nodes.

Wraps httpx with the configured timeout and User-Agent and logs each
call. A fresh httpx.Client is opened per request: nodes are shared across
concurrent runs and a run makes only a handful of calls.
"""

from __future__ import annotations

import time
from typing import Any

import httpx
import structlog

from pipeworks.contracts.context import ExecutionContext

logger = structlog.get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_USER_AGENT = "Pipeworks/1.0"


class HTTPClient:
    """Thin httpx wrapper with Pipeworks defaults.

    Example:
        client = HTTPClient(timeout=10.0)
        response = client.get("https://example.com/feed.xml")
    """

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self.timeout = timeout
        self.user_agent = user_agent

    def _headers(self, headers: dict[str, str] | None) -> dict[str, str]:
        merged = {"User-Agent": self.user_agent}
        if headers:
            merged.update(headers)
        return merged

    def _request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        json_body: Any = None,
    ) -> httpx.Response:
        start = time.perf_counter()
        with httpx.Client(timeout=self.timeout, follow_redirects=True) as client:
            try:
                response = client.request(method, url, headers=self._headers(headers), json=json_body)
            except httpx.HTTPError as e:
                logger.warning("http_request_failed", method=method, url=url, error=str(e))
                raise
        latency_ms = (time.perf_counter() - start) * 1000
        logger.debug(
            "http_request",
            method=method,
            url=url,
            status_code=response.status_code,
            latency_ms=round(latency_ms, 1),
        )
        return response

    def get(self, url: str, *, headers: dict[str, str] | None = None) -> httpx.Response:
        """Make GET request.

        Raises:
            httpx.HTTPError: For network errors (status codes are not checked)
        """
        return self._request("GET", url, headers=headers)

    def post_json(self, url: str, payload: Any, *, headers: dict[str, str] | None = None) -> httpx.Response:
        """POST payload as JSON.

        Custom headers are applied after the JSON content type and may
        override it.

        Raises:
            httpx.HTTPError: For network errors (status codes are not checked)
        """
        return self._request("POST", url, headers=headers, json_body=payload)


def client_for(ctx: ExecutionContext) -> HTTPClient:
    """HTTP client for a node invocation.

    Uses the client the executor attached to the context; outside an
    executor run, falls back to defaults capped by the context timeout.
    """
    if ctx.http_client is not None:
        return ctx.http_client
    timeout = DEFAULT_TIMEOUT_SECONDS
    if ctx.timeout_seconds:
        timeout = min(timeout, ctx.timeout_seconds)
    return HTTPClient(timeout=timeout)
