from __future__ import annotations

from typing import Any, Dict, Mapping, NotRequired, TypedDict

TASK_KEY_PREFIX = "TASK#"
KEY_ATTRIBUTE = "pk"
OPTIONAL_FIELDS = ("detail", "dueAt")
TASK_FIELDS = ("id", "title", "detail", "dueAt", "isComplete", "createdAt", "updatedAt")


# PUBLIC_INTERFACE
class TaskEntity(TypedDict):
    """
    A Task as seen outside the store boundary.

    Fields:
    - id: UUID string, generated server-side and never changed
    - title: Short title (1..100 chars)
    - detail: Optional description, absent when unset
    - dueAt: Optional ISO8601 timestamp, absent when unset
    - isComplete: Completion flag, always present
    - createdAt: ISO8601 UTC creation timestamp
    - updatedAt: ISO8601 UTC timestamp of the last mutation
    """

    id: str
    title: str
    detail: NotRequired[str]
    dueAt: NotRequired[str]
    isComplete: bool
    createdAt: str
    updatedAt: str


# PUBLIC_INTERFACE
class TaskRecord(TaskEntity):
    """A TaskEntity as persisted, with its derived partition key."""

    pk: str


# PUBLIC_INTERFACE
def derive_key(task_id: str) -> str:
    """Return the partition key for a task id, e.g. 'TASK#<id>'."""
    return f"{TASK_KEY_PREFIX}{task_id}"


# PUBLIC_INTERFACE
def to_record(task: Mapping[str, Any]) -> TaskRecord:
    """
    Build the stored representation of a task.

    The partition key is always recomputed from the id. Optional fields that
    are missing or None are left out of the record entirely.
    """
    record: Dict[str, Any] = {KEY_ATTRIBUTE: derive_key(task["id"])}
    for field in TASK_FIELDS:
        if field not in task:
            continue
        if field in OPTIONAL_FIELDS and task[field] is None:
            continue
        record[field] = task[field]
    return record  # type: ignore[return-value]


# PUBLIC_INTERFACE
def to_task(record: Mapping[str, Any]) -> TaskEntity:
    """Strip the partition key (and any null optional field) from a stored record."""
    task: Dict[str, Any] = {}
    for name, value in record.items():
        if name == KEY_ATTRIBUTE:
            continue
        if name in OPTIONAL_FIELDS and value is None:
            continue
        task[name] = value
    return task  # type: ignore[return-value]
