from __future__ import annotations

import functools
import inspect
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from boards_common.context import bind_corr_id
from boards_common.errors import ConnectorError, typed_error
from boards_common.telemetry import log_event

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Shared helpers for MCP tool handlers
# ---------------------------------------------------------------------------


_REDACTION_KEYS = {"authorization", "pat", "token", "api_token", "content"}


def sanitize_args_for_log(args: dict | None) -> dict:
    """Drop secrets and page bodies from args before they reach telemetry."""
    out: dict[str, Any] = {}
    for k, v in (args or {}).items():
        out[str(k)] = "***redacted***" if str(k).lower() in _REDACTION_KEYS else v
    return out


def _bound_args(sig: inspect.Signature, args: tuple[Any, ...], kwargs: dict[str, Any]) -> dict[str, Any]:
    """Bind positional/keyword args to parameter names for logging."""
    try:
        bound = sig.bind_partial(*args, **kwargs)
        bound.apply_defaults()
        return dict(bound.arguments)
    except TypeError:
        d: dict[str, Any] = dict(kwargs)
        if args:
            d["_args"] = list(args)
        return d


def error_payload(exc: Exception) -> dict:
    """Map an exception raised by a handler to the typed error envelope."""
    if isinstance(exc, ConnectorError):
        return exc.to_typed_error()
    if isinstance(exc, ValueError):
        return typed_error("bad_request", str(exc))
    return typed_error("internal", str(exc))


@dataclass(frozen=True)
class InstrumentConfig:
    kind: str
    name: str
    client_id: str
    telemetry_file: str = "mcp-telemetry.jsonl"

    # attach corr_id to returned dict for debugging
    attach_corr_id: bool = True


def _finish(cfg: InstrumentConfig, corr_id: str, args_for_log: dict, payload: Any, t0: float) -> Any:
    ms = int((time.perf_counter() - t0) * 1000)
    ok = not (isinstance(payload, dict) and "error" in payload)
    if not ok:
        args_for_log["error"] = payload.get("error")

    # The upstream call already happened; a telemetry failure must not turn it into an error.
    try:
        log_event(
            cfg.kind,
            cfg.name,
            args_for_log,
            ok=ok,
            ms=ms,
            client_id=cfg.client_id,
            corr_id=corr_id,
            telemetry_file=cfg.telemetry_file,
        )
    except OSError:
        logger.warning("Telemetry write failed for %s", cfg.name, exc_info=True)

    if cfg.attach_corr_id and isinstance(payload, dict):
        payload.setdefault("corr_id", corr_id)
    return payload


def instrument_sync_tool(cfg: InstrumentConfig):
    """Decorator for sync tools (e.g. healthz)."""

    def decorator(fn: Callable[..., Any]):
        fn_sig = inspect.signature(fn, eval_str=True)

        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any):
            corr_id = uuid.uuid4().hex
            bind_corr_id(corr_id)
            t0 = time.perf_counter()
            args_for_log = {"args": sanitize_args_for_log(_bound_args(fn_sig, args, kwargs))}

            try:
                payload = fn(*args, **kwargs)
            except Exception as e:
                logger.exception("Tool %s failed", cfg.name)
                payload = error_payload(e)

            return _finish(cfg, corr_id, args_for_log, payload, t0)

        wrapper.__signature__ = fn_sig  # type: ignore[attr-defined]
        return wrapper

    return decorator


def instrument_async_tool(cfg: InstrumentConfig):
    """Decorator for async tools backed by the connectors.

    Every call gets a fresh correlation id. Connector failures come back as
    typed error envelopes keyed by their error kind, never as raised exceptions.
    """

    def decorator(fn: Callable[..., Awaitable[Any]]):
        fn_sig = inspect.signature(fn, eval_str=True)

        @functools.wraps(fn)
        async def wrapper(*args: Any, **kwargs: Any):
            corr_id = uuid.uuid4().hex
            bind_corr_id(corr_id)
            t0 = time.perf_counter()
            args_for_log = {"args": sanitize_args_for_log(_bound_args(fn_sig, args, kwargs))}

            try:
                payload = await fn(*args, **kwargs)
            except ConnectorError as e:
                logger.warning("Tool %s failed: %r", cfg.name, e)
                payload = error_payload(e)
            except Exception as e:
                logger.exception("Tool %s failed", cfg.name)
                payload = error_payload(e)

            return _finish(cfg, corr_id, args_for_log, payload, t0)

        # Preserve signature for schema generation
        wrapper.__signature__ = fn_sig  # type: ignore[attr-defined]
        return wrapper

    return decorator
