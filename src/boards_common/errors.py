from __future__ import annotations

from enum import Enum
from typing import Any

REDACT_TOKEN = "***redacted***"


class ErrorKind(str, Enum):
    AUTH = "auth"
    RATE_LIMIT = "rate_limit"
    UPSTREAM = "upstream"
    TRANSPORT = "transport"


class ConnectorError(Exception):
    """Failure of an outbound call, tagged with an :class:`ErrorKind`.

    Callers dispatch on ``kind`` rather than on subclass identity:

      - ``auth``       401/403, credential missing/invalid/expired
      - ``rate_limit`` 429
      - ``upstream``   any other non-2xx; ``status_code`` and raw ``body`` attached
      - ``transport``  no HTTP response at all (DNS, refused, timeout)
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        status_code: int | None = None,
        body: Any = None,
        service: str | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = ErrorKind(kind)
        self.message = message
        self.status_code = status_code
        self.body = body
        self.service = service

    def __repr__(self) -> str:
        return f"ConnectorError(kind={self.kind.value!r}, status_code={self.status_code!r}, message={self.message!r})"

    @classmethod
    def auth(cls, hint: str, *, status_code: int = 401, service: str | None = None) -> "ConnectorError":
        return cls(ErrorKind.AUTH, hint, status_code=status_code, service=service)

    @classmethod
    def rate_limit(cls, message: str = "Rate limit exceeded", *, service: str | None = None) -> "ConnectorError":
        return cls(ErrorKind.RATE_LIMIT, message, status_code=429, service=service)

    @classmethod
    def upstream(cls, message: str, status_code: int | None, body: Any = None, *, service: str | None = None) -> "ConnectorError":
        return cls(ErrorKind.UPSTREAM, message, status_code=status_code, body=body, service=service)

    @classmethod
    def transport(cls, message: str, *, service: str | None = None) -> "ConnectorError":
        return cls(ErrorKind.TRANSPORT, message, service=service)

    def to_typed_error(self) -> dict:
        details: dict[str, Any] = {"service": self.service}
        if self.status_code is not None:
            details["status_code"] = self.status_code
        if self.body is not None:
            details["body"] = self.body
        return typed_error(self.kind.value, self.message, details=details)


def typed_error(code: str, message: str, *, details: dict | None = None, **extra: Any) -> dict:
    """
    Standard error envelope:
      {"error": {"code": code, "message": message, "details": {...}}, ...extra}
    """
    err: dict[str, Any] = {"error": {"code": code, "message": message}}
    if details:
        err["error"]["details"] = details
    if extra:
        err.update(extra)
    return err
