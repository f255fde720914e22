from __future__ import annotations

import logging
from datetime import datetime, timezone, tzinfo
from typing import Any, List, Mapping, NamedTuple, Optional, Union

from .clock import Clock, SystemClock
from .models import TaskEntity
from .query import (
    SortKey,
    TaskFilter,
    apply_query,
    can_schedule_reminder,
    is_overdue,
    relative_date_label,
    sort_tasks,
)
from .repositories import Repository
from .schemas import (
    TaskCreate,
    TaskOut,
    TaskUpdate,
    TaskView,
    dump_export,
    parse_import,
    validate_create,
    validate_update,
)

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
class Reminder(NamedTuple):
    """What the notification scheduler needs to raise a local alert for a task."""

    task_id: str
    title: str
    due_date: datetime


# PUBLIC_INTERFACE
class TaskService:
    """
    Lifecycle controller for tasks.

    Validates input before delegating to the repository, so only well-formed
    records are ever persisted. Scheduling notifications is left to the
    caller: create_task returns once the id and due date are stored.
    """

    def __init__(
        self,
        repository: Repository,
        clock: Optional[Clock] = None,
        tz: Optional[tzinfo] = None,
    ) -> None:
        self._repo = repository
        self._clock = clock or SystemClock()
        self._tz = tz or timezone.utc

    @property
    def repository(self) -> Repository:
        return self._repo

    # ---- lifecycle ----

    def create_task(self, data: Union[TaskCreate, Mapping[str, Any]]) -> str:
        payload = validate_create(data)
        task_id = self._repo.create(payload)
        logger.info("Created task id=%s due=%s", task_id, payload.due_date.isoformat())
        return task_id

    def update_task(self, task_id: str, data: Union[TaskUpdate, Mapping[str, Any]]) -> TaskEntity:
        payload = validate_update(data)
        updated = self._repo.update(task_id, payload)
        logger.info("Updated task id=%s fields=%s", task_id, sorted(payload.model_fields_set))
        return updated

    def set_completed(self, task_id: str, value: bool) -> TaskEntity:
        """Mark a task completed or reopen it. Setting the current value again is a no-op."""
        return self.update_task(task_id, {"is_completed": value})

    def delete_task(self, task_id: str) -> bool:
        """Delete permanently. Deleting an unknown id succeeds and returns False."""
        deleted = self._repo.delete(task_id)
        logger.info("Deleted task id=%s existed=%s", task_id, deleted)
        return deleted

    # ---- reads ----

    def get_task(self, task_id: str) -> Optional[TaskEntity]:
        return self._repo.get(task_id)

    def get_all_tasks(self) -> List[TaskEntity]:
        return self._repo.get_all()

    def search_tasks(self, query: str) -> List[TaskEntity]:
        return self._repo.search(query)

    def list_tasks(
        self,
        criteria: Optional[TaskFilter] = None,
        sort_key: Union[SortKey, str, None] = None,
    ) -> List[TaskEntity]:
        """All tasks narrowed by `criteria`, then ordered by `sort_key`."""
        return apply_query(self._repo.get_all(), criteria, sort_key)

    def view(self, task: TaskEntity) -> TaskView:
        """Attach the overdue flag and relative due label as of now."""
        now = self._clock.now()
        return TaskView(
            **task,
            is_overdue=is_overdue(task, now),
            due_label=relative_date_label(task["due_date"], now, self._tz),
        )

    # ---- notification boundary ----

    def reminder_for(self, task_id: str) -> Optional[Reminder]:
        """
        Return the reminder for a task if one may be scheduled now, i.e. the
        task exists, is not completed and is due strictly in the future.
        """
        task = self._repo.get(task_id)
        if task is None or task["is_completed"]:
            return None
        if not can_schedule_reminder(task["due_date"], self._clock.now()):
            return None
        return Reminder(task["id"], task["title"], task["due_date"])

    def pending_reminders(self) -> List[Reminder]:
        """Reminders for every open task due in the future, soonest first."""
        now = self._clock.now()
        upcoming = [
            t for t in self._repo.get_all()
            if not t["is_completed"] and can_schedule_reminder(t["due_date"], now)
        ]
        return [Reminder(t["id"], t["title"], t["due_date"]) for t in sort_tasks(upcoming, SortKey.DATE)]

    # ---- import / export ----

    def export_tasks(self) -> str:
        """Serialize every task as a JSON array with camelCase field names."""
        records = [TaskOut(**t) for t in self._repo.get_all()]
        return dump_export(records)

    def import_tasks(self, payload: Union[str, bytes]) -> List[str]:
        """
        Re-create every record of an exported JSON array.

        The whole payload is validated before anything is written. Imported
        tasks receive fresh ids and creation timestamps; the exported id and
        createdAt are ignored so an import can never collide with existing tasks.
        """
        return self.import_records(parse_import(payload))

    def import_records(self, records: List[TaskCreate]) -> List[str]:
        """Create one task per already-validated record and return the new ids."""
        ids = [self.create_task(record) for record in records]
        logger.info("Imported %d task(s)", len(ids))
        return ids
