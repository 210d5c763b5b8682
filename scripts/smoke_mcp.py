"""
Smoke script against live Azure Boards / Confluence (no mocks).

It performs:
 1) Spawns the server over stdio (reads .env like the real entrypoint)
 2) Lists tools and calls healthz
 3) Calls countAllTasks and list_spaces; any error envelope is reported
"""

from __future__ import annotations

import asyncio
import json
import os
import sys
from pathlib import Path
from typing import Any

_REPO_ROOT = Path(__file__).resolve().parents[1]


def _unwrap_tool_result(res: Any) -> Any:
    structured = getattr(res, "structuredContent", None)
    if structured is not None:
        return structured
    content = getattr(res, "content", None)
    if not content:
        return res
    text = getattr(content[0], "text", None)
    try:
        return json.loads(text)
    except (TypeError, ValueError):
        return text


async def main() -> int:
    from mcp import ClientSession
    from mcp.client.stdio import StdioServerParameters, stdio_client

    python_cmd = os.getenv("MCP_PYTHON") or sys.executable
    env = dict(os.environ, MCP_TRANSPORT="stdio")
    env["PYTHONPATH"] = os.pathsep.join(p for p in (str(_REPO_ROOT / "src"), env.get("PYTHONPATH")) if p)

    print(f"[smoke] Repo root: {_REPO_ROOT}")
    print(f"[smoke] Python: {python_cmd}")

    server = StdioServerParameters(command=python_cmd, args=["-m", "boards_mcp.server"], env=env)
    ok = True

    async with stdio_client(server) as (read, write):
        async with ClientSession(read, write) as session:
            await session.initialize()

            tools = await session.list_tools()
            print("\n[smoke] TOOLS:")
            for t in tools.tools:
                print(f" - {t.name}")

            for name in ("healthz", "countAllTasks", "list_spaces"):
                out = _unwrap_tool_result(await session.call_tool(name, {}))
                print(f"\n[smoke] CALL {name}:")
                print(json.dumps(out, indent=2, ensure_ascii=False, default=str))
                if isinstance(out, dict) and "error" in out:
                    ok = False

    print("\n[smoke] OK" if ok else "\n[smoke] Completed with errors")
    return 0 if ok else 1


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
