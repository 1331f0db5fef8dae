from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, Callable, Dict, List, Optional

from .models import TaskEntity, derive_key, to_record, to_task
from .schemas import CreateTaskDto, UpdateTaskDto
from .settings import get_settings
from .stores import ConditionalCheckFailedError, InMemoryStore, KeyValueStore, UpdatePlan
from .utils import new_task_id, utc_now_iso

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
def build_update_plan(data: UpdateTaskDto, now: str) -> UpdatePlan:
    """
    Translate an update payload into an UpdatePlan.

    - title, isComplete and updatedAt are always set
    - detail and dueAt are set when provided, removed otherwise
    """
    set_fields: Dict[str, Any] = {
        "title": data.title,
        "isComplete": data.is_complete,
        "updatedAt": now,
    }
    remove_fields: List[str] = []
    for attr, value in (("detail", data.detail), ("dueAt", data.due_at)):
        if value is not None:
            set_fields[attr] = value
        else:
            remove_fields.append(attr)
    return UpdatePlan(set_fields=set_fields, remove_fields=tuple(remove_fields))


# PUBLIC_INTERFACE
class TaskRepository:
    """
    Task persistence on top of a KeyValueStore.

    Every operation is a single store request. A missing task is reported as
    None (get/update) or False (delete); any other store error propagates to
    the caller unchanged.
    """

    def __init__(
        self,
        store: KeyValueStore,
        clock: Callable[[], str] = utc_now_iso,
        id_factory: Callable[[], str] = new_task_id,
    ) -> None:
        self._store = store
        self._clock = clock
        self._id_factory = id_factory

    def list(self) -> List[TaskEntity]:
        """Return every task via a full scan. Order is whatever the store reports."""
        logger.info("list tasks")
        try:
            items = self._store.scan()
        except Exception:
            logger.exception("list tasks failed")
            raise
        tasks = [to_task(item) for item in items]
        logger.info("listed %d tasks", len(tasks), extra={"count": len(tasks)})
        return tasks

    def get(self, task_id: str) -> Optional[TaskEntity]:
        """Return a task by id, or None if not found."""
        logger.info("get task %s", task_id, extra={"task_id": task_id})
        try:
            item = self._store.get_item(derive_key(task_id))
        except Exception:
            logger.exception("get task failed", extra={"task_id": task_id})
            raise
        if item is None:
            logger.info("task %s not found", task_id, extra={"task_id": task_id})
            return None
        return to_task(item)

    def create(self, data: CreateTaskDto) -> TaskEntity:
        """Create, store and return a new task with a server-generated id."""
        now = self._clock()
        task: Dict[str, Any] = {"id": self._id_factory(), "title": data.title}
        if data.detail is not None:
            task["detail"] = data.detail
        if data.due_at is not None:
            task["dueAt"] = data.due_at
        task.update(isComplete=data.is_complete, createdAt=now, updatedAt=now)

        record = to_record(task)
        logger.debug("put item %s", record["pk"], extra={"task_id": task["id"]})
        try:
            self._store.put_item(record)
        except Exception:
            logger.exception("create task failed", extra={"task_id": task["id"]})
            raise
        logger.info("created task %s", task["id"], extra={"task_id": task["id"]})
        return to_task(record)

    def update(self, task_id: str, data: UpdateTaskDto) -> Optional[TaskEntity]:
        """
        Rewrite an existing task from data. Return the updated task, or None
        if no task exists for task_id (in which case nothing is written).
        """
        plan = build_update_plan(data, self._clock())
        logger.debug(
            "update item: set=%s remove=%s",
            sorted(plan.set_fields),
            list(plan.remove_fields),
            extra={"task_id": task_id},
        )
        try:
            item = self._store.update_item(derive_key(task_id), plan)
        except ConditionalCheckFailedError:
            logger.info("task %s not found", task_id, extra={"task_id": task_id})
            return None
        except Exception:
            logger.exception("update task failed", extra={"task_id": task_id})
            raise
        logger.info("updated task %s", task_id, extra={"task_id": task_id})
        return to_task(item)

    def delete(self, task_id: str) -> bool:
        """Delete a task by id. Return True if deleted, False if not found."""
        try:
            self._store.delete_item(derive_key(task_id))
        except ConditionalCheckFailedError:
            logger.info("task %s not found", task_id, extra={"task_id": task_id})
            return False
        except Exception:
            logger.exception("delete task failed", extra={"task_id": task_id})
            raise
        logger.info("deleted task %s", task_id, extra={"task_id": task_id})
        return True


# PUBLIC_INTERFACE
def create_store() -> KeyValueStore:
    """
    Build the key-value store selected by settings.
    - memory: InMemoryStore
    - sqlite: SQLiteStore (standard library sqlite3)
    - dynamodb: DynamoDBStore (boto3)
    """
    settings = get_settings()
    if settings.persistence_backend == "sqlite":
        from .db import SQLiteStore

        return SQLiteStore(settings.sqlite_db_path)
    if settings.persistence_backend == "dynamodb":
        from .dynamodb import DynamoDBStore

        return DynamoDBStore.from_settings(
            table_name=settings.tasks_table,  # type: ignore[arg-type]
            region=settings.aws_region,
            endpoint_url=settings.dynamodb_endpoint_url,
        )
    return InMemoryStore()


# PUBLIC_INTERFACE
@lru_cache(maxsize=1)
def get_repository() -> TaskRepository:
    """
    Return the process-wide TaskRepository.
    The underlying store client is created on first use and reused afterwards.
    """
    return TaskRepository(create_store())
