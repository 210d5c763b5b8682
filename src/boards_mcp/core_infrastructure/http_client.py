"""
Shared HTTP client for the upstream connectors.

Goals:
- Centralize timeouts, default headers and failure logging.
- Classify every failure exactly once into the connector error taxonomy
  (auth / rate_limit / upstream / transport).
- Keep dependencies limited to `requests`.

No retries are configured: a failed call surfaces immediately.
"""

from __future__ import annotations

import asyncio
import base64
import logging
import os
import time
from dataclasses import dataclass, field
from typing import Any, Mapping

import requests
from requests import Response

from boards_common.errors import ConnectorError
from boards_common.context import current_corr_id


logger = logging.getLogger(__name__)


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


DEFAULT_CONNECT_TIMEOUT_S = _env_float("BOARDS_HTTP_CONNECT_TIMEOUT", 3.05)
DEFAULT_READ_TIMEOUT_S = _env_float("BOARDS_HTTP_READ_TIMEOUT", 30.0)
DEFAULT_TIMEOUT = (DEFAULT_CONNECT_TIMEOUT_S, DEFAULT_READ_TIMEOUT_S)

AUTH_STATUSES = (401, 403)
RATE_LIMIT_STATUS = 429


def basic_auth_header(user: str, secret: str) -> str:
    token = base64.b64encode(f"{user}:{secret}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


@dataclass(frozen=True)
class HttpClientConfig:
    service: str = "upstream"
    auth_hint: str = "Authentication failed. Check your credentials."
    timeout: tuple[float, float] | float = DEFAULT_TIMEOUT
    headers: Mapping[str, str] = field(default_factory=dict)
    user_agent: str = os.getenv("BOARDS_HTTP_USER_AGENT", "boards-mcp-connector/1.0")


def _response_body(resp: Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return resp.text


def classify_request_exception(exc: requests.RequestException, config: HttpClientConfig) -> ConnectorError:
    """Map a `requests` failure onto the connector error taxonomy."""
    resp = getattr(exc, "response", None)
    if resp is None:
        return ConnectorError.transport(f"Network or unknown error: {exc}", service=config.service)

    status = resp.status_code
    if status in AUTH_STATUSES:
        return ConnectorError.auth(config.auth_hint, status_code=status, service=config.service)
    if status == RATE_LIMIT_STATUS:
        return ConnectorError.rate_limit(
            f"{config.service} API rate limit exceeded. Please wait a moment.",
            service=config.service,
        )

    body = _response_body(resp)
    if isinstance(body, dict) and body.get("message"):
        detail = body["message"]
    elif isinstance(body, str) and body:
        detail = body
    else:
        detail = str(exc)
    return ConnectorError.upstream(f"{config.service} API Error: {detail}", status, body, service=config.service)


class HttpClient:
    """A small wrapper around `requests.Session` that raises `ConnectorError`."""

    def __init__(self, *, config: HttpClientConfig | None = None, session: requests.Session | None = None) -> None:
        self.config = config or HttpClientConfig()
        self.session = session or requests.Session()
        self.session.headers.setdefault("User-Agent", self.config.user_agent)
        self.session.headers.update(dict(self.config.headers))

    def request(
        self,
        method: str,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: tuple[float, float] | float | None = None,
    ) -> Response:
        """Perform an HTTP request; non-2xx and transport failures raise `ConnectorError`."""
        t0 = time.perf_counter()
        try:
            resp = self.session.request(
                method=method,
                url=url,
                headers=dict(headers) if headers else None,
                params=dict(params) if params else None,
                json=json,
                timeout=timeout or self.config.timeout,
            )
            resp.raise_for_status()
            return resp
        except requests.RequestException as e:
            err = classify_request_exception(e, self.config)
            logger.warning(
                "HTTP %s %s failed (kind=%s, status=%s, ms=%s, corr_id=%s): %s",
                method.upper(),
                url,
                err.kind.value,
                err.status_code,
                int((time.perf_counter() - t0) * 1000),
                current_corr_id(),
                e,
            )
            raise err from e

    def request_json(self, method: str, url: str, **kwargs: Any) -> Any:
        resp = self.request(method, url, **kwargs)
        try:
            return resp.json()
        except ValueError as e:
            raise ConnectorError.upstream(
                f"{self.config.service} API Error: response is not JSON",
                resp.status_code,
                resp.text,
                service=self.config.service,
            ) from e

    async def arequest_json(self, method: str, url: str, **kwargs: Any) -> Any:
        """Run `request_json` off the event loop."""
        return await asyncio.to_thread(self.request_json, method, url, **kwargs)

    def close(self) -> None:
        self.session.close()
