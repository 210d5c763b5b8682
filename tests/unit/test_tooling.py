import json

import pytest

import boards_common.tooling as tooling
from boards_common.errors import ConnectorError
from boards_common.tooling import InstrumentConfig, instrument_async_tool, instrument_sync_tool, sanitize_args_for_log

CFG = InstrumentConfig(kind="tool", name="getTasks", client_id="C1")


@pytest.fixture()
def events(monkeypatch):
    captured = []
    monkeypatch.setattr(tooling, "log_event", lambda *a, **k: captured.append((a, k)))
    return captured


@pytest.mark.asyncio
async def test_success_attaches_corr_id_and_logs(events):
    @instrument_async_tool(CFG)
    async def fn(taskId: int) -> dict:
        return {"id": taskId}

    out = await fn(taskId=3)

    assert out["id"] == 3
    assert len(out["corr_id"]) == 32
    (args, kwargs), = events
    assert args[:3] == ("tool", "getTasks", {"args": {"taskId": 3}})
    assert kwargs["ok"] is True
    assert kwargs["corr_id"] == out["corr_id"]


@pytest.mark.asyncio
async def test_connector_error_becomes_envelope_with_kind(events):
    @instrument_async_tool(CFG)
    async def fn() -> dict:
        raise ConnectorError.auth("Check your CONFLUENCE_* variables", status_code=403, service="Confluence")

    out = await fn()

    assert out["error"]["code"] == "auth"
    assert out["error"]["details"]["status_code"] == 403
    assert events[0][1]["ok"] is False


@pytest.mark.asyncio
async def test_value_error_is_bad_request_and_other_errors_internal(events):
    @instrument_async_tool(CFG)
    async def bad(taskType: str) -> dict:
        raise ValueError("taskType must be one of: Epic, Task, User Story")

    @instrument_async_tool(CFG)
    async def broken() -> dict:
        raise KeyError("version")

    assert (await bad(taskType="Bug"))["error"]["code"] == "bad_request"
    assert (await broken())["error"]["code"] == "internal"


@pytest.mark.asyncio
async def test_each_call_gets_a_new_corr_id(events):
    @instrument_async_tool(CFG)
    async def fn() -> dict:
        return {}

    assert (await fn())["corr_id"] != (await fn())["corr_id"]


def test_sync_tool_wrapper_keeps_signature(events):
    import inspect

    @instrument_sync_tool(InstrumentConfig(kind="tool", name="healthz", client_id="C1"))
    def healthz() -> dict:
        return {"ok": True}

    assert healthz()["ok"] is True
    assert str(inspect.signature(healthz)) == "() -> dict"


def test_sanitize_args_redacts_secrets_and_content():
    out = sanitize_args_for_log({"pageId": "1", "content": "<p>long</p>", "token": "t"})
    assert out == {"pageId": "1", "content": "***redacted***", "token": "***redacted***"}


@pytest.mark.asyncio
async def test_telemetry_written_as_jsonl(tmp_path, monkeypatch):
    monkeypatch.setenv("BOARDS_TELEMETRY_DIR", str(tmp_path / "t"))

    @instrument_async_tool(CFG)
    async def fn(pageId: str) -> dict:
        return {"ok": True}

    await fn(pageId="9")

    lines = (tmp_path / "t" / "mcp-telemetry.jsonl").read_text(encoding="utf-8").splitlines()
    rec = json.loads(lines[-1])
    assert rec["name"] == "getTasks"
    assert rec["args"] == {"args": {"pageId": "9"}}
    assert rec["ok"] is True


@pytest.mark.asyncio
async def test_unwritable_telemetry_dir_does_not_fail_the_call(tmp_path, monkeypatch):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("x", encoding="utf-8")
    monkeypatch.setenv("BOARDS_TELEMETRY_DIR", str(blocker / "t"))

    @instrument_async_tool(InstrumentConfig(kind="tool", name="create_page", client_id="C1"))
    async def fn() -> dict:
        return {"count": 3}

    out = await fn()

    assert out["count"] == 3
    assert "error" not in out


def test_unwritable_telemetry_dir_sync_tool(tmp_path, monkeypatch):
    blocker = tmp_path / "file"
    blocker.write_text("x", encoding="utf-8")
    monkeypatch.setenv("BOARDS_TELEMETRY_DIR", str(blocker / "t"))

    @instrument_sync_tool(InstrumentConfig(kind="tool", name="healthz", client_id="C1"))
    def healthz() -> dict:
        return {"ok": True}

    assert healthz()["ok"] is True
