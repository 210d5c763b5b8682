from __future__ import annotations

import logging
from typing import Any, Sequence
from urllib.parse import quote

from boards_config.settings import AzureBoardsSettings
from boards_mcp.connectors.azure_boards import wiql
from boards_mcp.connectors.azure_boards.models import TASK_TYPES, TaskDetail, TaskRecord
from boards_mcp.core_infrastructure.http_client import HttpClient, HttpClientConfig, basic_auth_header


logger = logging.getLogger(__name__)

API_VERSION = "7.1"

# Upstream cap on ids per work item batch request.
MAX_BATCH_SIZE = 200

AUTH_HINT = (
    "Authentication failed. Check your AZURE_DEVOPS_ORG_URL, AZURE_DEVOPS_PAT, "
    "and AZURE_DEVOPS_PROJECT environment variables."
)


class WorkItemConnector:
    """Work item queries against Azure Boards (WIQL + work item REST API).

    Holds no state besides the HTTP client; every call builds fresh records.
    """

    def __init__(self, settings: AzureBoardsSettings, *, http: HttpClient | None = None) -> None:
        self.settings = settings
        self._base = f"{settings.org_url.rstrip('/')}/{quote(settings.project, safe='')}/_apis/wit"
        self._http = http or HttpClient(
            config=HttpClientConfig(
                service="Azure DevOps",
                auth_hint=AUTH_HINT,
                headers={
                    "Authorization": basic_auth_header("", settings.pat),
                    "Accept": "application/json",
                },
            )
        )

    @classmethod
    def from_env(cls, **kwargs: Any) -> "WorkItemConnector":
        return cls(AzureBoardsSettings.from_env(), **kwargs)

    # -- transport -----------------------------------------------------------

    async def _query_ids(self, statement: str) -> list[int]:
        result = await self._http.arequest_json(
            "POST",
            f"{self._base}/wiql",
            params={"api-version": API_VERSION},
            json={"query": statement},
        )
        return [int(item["id"]) for item in (result or {}).get("workItems") or []]

    async def _fetch_batch(self, ids: Sequence[int], fields: Sequence[str] = wiql.SUMMARY_FIELDS) -> list[dict]:
        result = await self._http.arequest_json(
            "GET",
            f"{self._base}/workitems",
            params={
                "ids": ",".join(str(i) for i in ids),
                "fields": ",".join(fields),
                "api-version": API_VERSION,
            },
        )
        return list((result or {}).get("value") or [])

    # -- operations ----------------------------------------------------------

    async def list_active_tasks(self) -> list[TaskRecord]:
        """All tasks not closed or removed.

        WIQL is asked for every id; type/state filtering happens here after the
        details are fetched in batches of at most MAX_BATCH_SIZE. A failing batch
        aborts the call and nothing fetched so far is returned.
        """
        logger.info("Requesting all active tasks from Azure Boards...")
        ids = await self._query_ids(wiql.all_ids_query())
        if not ids:
            logger.info("No work items found in Azure Boards.")
            return []

        logger.info("Found %s total work items. Fetching details...", len(ids))
        items: list[dict] = []
        for start in range(0, len(ids), MAX_BATCH_SIZE):
            items.extend(await self._fetch_batch(ids[start:start + MAX_BATCH_SIZE]))

        records = [TaskRecord.from_work_item(item) for item in items]
        active = [r for r in records if r.is_active_task()]
        logger.info("Found %s active tasks.", len(active))
        return active

    async def get_task_detail(self, task_id: int) -> TaskDetail:
        logger.info("Requesting description for task ID: %s...", task_id)
        item = await self._http.arequest_json(
            "GET",
            f"{self._base}/workitems/{wiql.wiql_int(task_id)}",
            params={"api-version": API_VERSION},
        )
        return TaskDetail.from_work_item(item)

    async def count_tasks(self) -> int:
        """Number of work items of type Task, closed and removed ones included."""
        logger.info("Requesting total count of all tasks...")
        ids = await self._query_ids(wiql.ids_by_type_query("Task"))
        logger.info("Found %s total tasks.", len(ids))
        return len(ids)

    async def get_child_tasks(self, parent_id: int) -> list[TaskRecord]:
        logger.info("Requesting child tasks for parent ID: %s...", parent_id)
        ids = await self._query_ids(wiql.children_query(parent_id, TASK_TYPES))
        if not ids:
            logger.info("No child tasks found for parent ID: %s.", parent_id)
            return []
        logger.info("Found %s child tasks. Fetching details...", len(ids))
        return [TaskRecord.from_work_item(item) for item in await self._fetch_batch(ids)]

    async def get_tasks_by_type(self, task_type: str) -> list[TaskRecord]:
        if task_type not in TASK_TYPES:
            raise ValueError(f"taskType must be one of: {', '.join(sorted(TASK_TYPES))}")
        logger.info("Requesting tasks of type: %s...", task_type)
        ids = await self._query_ids(wiql.summary_by_type_query(task_type))
        if not ids:
            logger.info("No tasks found for type: %s.", task_type)
            return []
        logger.info("Found %s tasks of type %s. Fetching details...", len(ids), task_type)
        return [TaskRecord.from_work_item(item) for item in await self._fetch_batch(ids)]

    def close(self) -> None:
        self._http.close()
