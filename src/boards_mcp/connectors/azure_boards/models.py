from __future__ import annotations

from typing import Any, Literal, Mapping

from pydantic import BaseModel

from boards_mcp.connectors.azure_boards.wiql import (
    FIELD_DESCRIPTION,
    FIELD_REPRO_STEPS,
    FIELD_STATE,
    FIELD_TITLE,
    FIELD_TYPE,
)
from boards_mcp.connectors.markup import strip_html

TaskType = Literal["Epic", "User Story", "Task"]
TASK_TYPES: tuple[str, ...] = ("Task", "User Story", "Epic")

INACTIVE_STATES = frozenset({"Closed", "Removed"})


class TaskRecord(BaseModel):
    id: int
    title: str = ""
    state: str = ""  # open vocabulary, defined by the process template
    type: str = ""

    @classmethod
    def from_work_item(cls, item: Mapping[str, Any]) -> "TaskRecord":
        fields = item.get("fields") or {}
        return cls(
            id=item["id"],
            title=fields.get(FIELD_TITLE) or "",
            state=fields.get(FIELD_STATE) or "",
            type=fields.get(FIELD_TYPE) or "",
        )

    def is_active_task(self) -> bool:
        return self.type == "Task" and self.state not in INACTIVE_STATES


class TaskDetail(TaskRecord):
    description: str = ""

    @classmethod
    def from_work_item(cls, item: Mapping[str, Any]) -> "TaskDetail":
        base = TaskRecord.from_work_item(item)
        fields = item.get("fields") or {}
        # Bugs keep their text in repro steps rather than the description.
        raw = fields.get(FIELD_DESCRIPTION) or fields.get(FIELD_REPRO_STEPS)
        return cls(**base.model_dump(), description=strip_html(raw))
