"""WIQL statement construction.

Caller-supplied values never reach a statement unescaped: integers go through
`wiql_int`, string literals through `wiql_string`.
"""

from __future__ import annotations

from typing import Iterable

FIELD_ID = "System.Id"
FIELD_TITLE = "System.Title"
FIELD_STATE = "System.State"
FIELD_TYPE = "System.WorkItemType"
FIELD_PARENT = "System.Parent"
FIELD_DESCRIPTION = "System.Description"
FIELD_REPRO_STEPS = "Microsoft.VSTS.TCM.ReproSteps"

SUMMARY_FIELDS = (FIELD_ID, FIELD_TITLE, FIELD_STATE, FIELD_TYPE)


def wiql_int(value: int) -> str:
    if isinstance(value, bool):
        raise ValueError(f"Expected an integer work item id, got {value!r}")
    return str(int(value))


def wiql_string(value: str) -> str:
    return "'" + str(value).replace("'", "''") + "'"


def _columns(fields: Iterable[str]) -> str:
    return ", ".join(f"[{f}]" for f in fields)


def all_ids_query() -> str:
    return f"Select [{FIELD_ID}] From WorkItems"


def ids_by_type_query(task_type: str) -> str:
    return f"Select [{FIELD_ID}] From WorkItems Where [{FIELD_TYPE}] = {wiql_string(task_type)}"


def summary_by_type_query(task_type: str) -> str:
    return f"Select {_columns(SUMMARY_FIELDS)} From WorkItems Where [{FIELD_TYPE}] = {wiql_string(task_type)}"


def children_query(parent_id: int, types: Iterable[str]) -> str:
    type_list = ", ".join(wiql_string(t) for t in types)
    return (
        f"Select {_columns(SUMMARY_FIELDS)} From WorkItems "
        f"Where [{FIELD_PARENT}] = {wiql_int(parent_id)} AND [{FIELD_TYPE}] IN ({type_list})"
    )
