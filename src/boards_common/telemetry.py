from __future__ import annotations

import datetime as _dt
import json
import os
from pathlib import Path
from typing import Any

from boards_config.settings import telemetry_dir
from boards_common.context import current_corr_id
from boards_common.errors import REDACT_TOKEN

TELEMETRY_FILE = "mcp-telemetry.jsonl"

_SECRET_KEYS = {
    "authorization",
    "pat",
    "api_token",
    "apitoken",
    "token",
    "access_token",
    "api_key",
    "password",
}


def telemetry_disabled() -> bool:
    return os.getenv("BOARDS_DISABLE_TELEMETRY", "0").strip().lower() in {"1", "true", "yes"}


def _redact_secrets(obj: Any) -> Any:
    if isinstance(obj, dict):
        out = {}
        for k, v in obj.items():
            if isinstance(k, str) and k.strip().lower() in _SECRET_KEYS:
                if isinstance(v, str) and v.strip().lower().startswith(("bearer ", "basic ")):
                    out[k] = v.split(None, 1)[0] + " " + REDACT_TOKEN
                else:
                    out[k] = REDACT_TOKEN
            else:
                out[k] = _redact_secrets(v)
        return out
    if isinstance(obj, list):
        return [_redact_secrets(x) for x in obj]
    return obj


def log_event(
    kind: str,
    name: str,
    args: dict | None = None,
    ok: bool = True,
    ms: int = 0,
    *,
    client_id: str | None = None,
    corr_id: str | None = None,
    telemetry_file: str = TELEMETRY_FILE,
) -> Path | None:
    """
    Append one JSONL telemetry record for a tool call. Returns the file written, if any.
    """
    if telemetry_disabled():
        return None

    rec = {
        "ts": _dt.datetime.now(_dt.timezone.utc).isoformat().replace("+00:00", "Z"),
        "kind": kind,
        "name": name,
        "client_id": client_id,
        "request_id": current_corr_id() or corr_id,
        "corr_id": corr_id,
        "args": {} if args is None else dict(args),
        "ok": bool(ok),
        "ms": int(ms),
    }

    out_dir = telemetry_dir()
    out_dir.mkdir(parents=True, exist_ok=True)
    p = out_dir / telemetry_file
    with p.open("a", encoding="utf-8") as f:
        f.write(json.dumps(_redact_secrets(rec), ensure_ascii=False, default=str) + "\n")
    return p
