from boards_mcp.connectors.azure_boards.client import WorkItemConnector
from boards_mcp.connectors.azure_boards.models import TASK_TYPES, TaskDetail, TaskRecord

__all__ = ["WorkItemConnector", "TaskRecord", "TaskDetail", "TASK_TYPES"]
