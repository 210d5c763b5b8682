import logging
import os
import sys
from typing import Annotated, Any, Literal, Optional

from mcp.server.fastmcp import FastMCP
from pydantic import Field

from boards_common.tooling import InstrumentConfig, instrument_async_tool, instrument_sync_tool
from boards_config.settings import ConfigError, init_runtime
from boards_mcp.connectors.azure_boards import WorkItemConnector
from boards_mcp.connectors.confluence import ContentConnector


logger = logging.getLogger(__name__)

SERVER_NAME = "azure-boards-connector"
MCP_CLIENT_ID = os.getenv("MCP_CLIENT_ID", "boards_mcp")

_STORAGE_FORMAT = "Page content in Confluence Storage Format (XML-based)."


def _dump_all(records) -> list[dict]:
    return [r.model_dump(by_alias=True, exclude_none=True) for r in records]


class ToolHandlers:
    """Tool implementations. Connectors are injected; no module-level clients."""

    def __init__(self, boards: WorkItemConnector, wiki: ContentConnector) -> None:
        self.boards = boards
        self.wiki = wiki

    # -- Azure Boards --------------------------------------------------------

    async def get_tasks(self) -> dict[str, Any]:
        """Returns a list of all active tasks (type Task, not Closed or Removed)."""
        return {"tasks": _dump_all(await self.boards.list_active_tasks())}

    async def get_task_description(
        self,
        taskId: Annotated[int, Field(description="The ID of the task.")],
    ) -> dict[str, Any]:
        """Returns the details and description of a specific task."""
        detail = await self.boards.get_task_detail(taskId)
        return detail.model_dump()

    async def get_child_tasks(
        self,
        parentId: Annotated[int, Field(description="The ID of the parent task.")],
    ) -> dict[str, Any]:
        """Returns a list of child tasks for a given parent task."""
        return {"childTasks": _dump_all(await self.boards.get_child_tasks(parentId))}

    async def count_all_tasks(self) -> dict[str, Any]:
        """Returns the total count of all tasks ever created in the project."""
        return {"count": await self.boards.count_tasks()}

    async def get_tasks_by_type(
        self,
        taskType: Annotated[
            Literal["Epic", "User Story", "Task"],
            Field(description="The type of the task. Can be 'Epic', 'User Story' or 'Task'."),
        ],
    ) -> dict[str, Any]:
        """Returns a list of tasks of a specific type. The possible types are 'Epic', 'User Story' and 'Task'."""
        return {"tasks": _dump_all(await self.boards.get_tasks_by_type(taskType))}

    # -- Confluence ----------------------------------------------------------

    async def get_page(
        self,
        pageId: Annotated[str, Field(description="The ID of the Confluence page.")],
    ) -> dict[str, Any]:
        """Retrieve a specific Confluence page by its ID."""
        page = await self.wiki.get_page(pageId)
        return {"page": page.to_dict()}

    async def search_confluence(
        self,
        cql: Annotated[str, Field(description="CQL search query (e.g., 'type=page AND space=DEMO').")],
    ) -> dict[str, Any]:
        """Search Confluence content using CQL (e.g. 'type=page AND space=DEMO')."""
        results = await self.wiki.search(cql)
        return {"results": results.to_dict()}

    async def list_spaces(self) -> dict[str, Any]:
        """List all available Confluence spaces."""
        return {"spaces": {"results": _dump_all(await self.wiki.list_spaces())}}

    async def create_page(
        self,
        spaceKey: Annotated[str, Field(description="The key of the space for the new page.")],
        title: Annotated[str, Field(description="The title for the new page.")],
        content: Annotated[str, Field(description=_STORAGE_FORMAT)],
        parentId: Annotated[Optional[str], Field(description="ID of the parent page (optional).")] = None,
    ) -> dict[str, Any]:
        """Creates a new Confluence page. Content must be in Confluence Storage Format (XML-based)."""
        page = await self.wiki.create_page(spaceKey, title, content, parentId)
        return {"page": page.to_dict()}

    async def update_page(
        self,
        pageId: Annotated[str, Field(description="The ID of the page to update.")],
        title: Annotated[str, Field(description="The new title for the page.")],
        content: Annotated[str, Field(description=_STORAGE_FORMAT)],
    ) -> dict[str, Any]:
        """Updates an existing Confluence page. Content must be in Confluence Storage Format (XML-based)."""
        page = await self.wiki.update_page(pageId, title, content)
        return {"page": page.to_dict()}


# (tool name, handler attribute, display title)
TOOL_TABLE = (
    ("getTasks", "get_tasks", "Get Tasks"),
    ("getTaskDescription", "get_task_description", "Get Task Description"),
    ("getChildTasks", "get_child_tasks", "Get Child Tasks"),
    ("countAllTasks", "count_all_tasks", "Count All Tasks"),
    ("getTasksByType", "get_tasks_by_type", "Get Tasks By Type"),
    ("get_page", "get_page", "Get Confluence Page"),
    ("search_confluence", "search_confluence", "Search Confluence"),
    ("list_spaces", "list_spaces", "List Confluence Spaces"),
    ("create_page", "create_page", "Create Confluence Page"),
    ("update_page", "update_page", "Update Confluence Page"),
)


def _cfg(tool_name: str) -> InstrumentConfig:
    return InstrumentConfig(kind="tool", name=tool_name, client_id=MCP_CLIENT_ID)


def healthz() -> dict:
    return {"ok": True}


def create_server(
    boards: WorkItemConnector,
    wiki: ContentConnector,
    *,
    host: str | None = None,
    port: int | None = None,
) -> FastMCP:
    """Build the MCP server with every tool bound to the given connectors."""
    mcp = FastMCP(
        name=SERVER_NAME,
        instructions="Azure Boards work items and Confluence pages exposed as MCP tools.",
        host=host or os.getenv("MCP_HOST", "0.0.0.0"),
        port=port or int(os.getenv("PORT", "3005")),
    )
    handlers = ToolHandlers(boards, wiki)

    for tool_name, attr, title in TOOL_TABLE:
        fn = instrument_async_tool(_cfg(tool_name))(getattr(handlers, attr))
        mcp.tool(name=tool_name, title=title)(fn)

    mcp.tool(name="healthz", title="Health Check")(instrument_sync_tool(_cfg("healthz"))(healthz))
    return mcp


def main() -> None:
    # Entry points (console_scripts) call main() directly, so we must perform
    # runtime initialization here (dotenv + logging).
    init_runtime()
    try:
        boards = WorkItemConnector.from_env()
        wiki = ContentConnector.from_env()
    except ConfigError as e:
        logger.error("%s", e)
        sys.exit(2)

    transport = os.environ.get("MCP_TRANSPORT", "stdio")
    logger.info("Starting %s (transport=%s)", SERVER_NAME, transport)
    create_server(boards, wiki).run(transport=transport)


if __name__ == "__main__":
    main()
