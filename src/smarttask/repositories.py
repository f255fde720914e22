from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from threading import RLock
from typing import Any, Dict, List, Mapping, Optional

from .clock import Clock, SystemClock
from .errors import NotFoundError
from .models import TaskEntity
from .query import filter_by_text
from .schemas import TaskCreate, TaskUpdate
from .settings import Settings, get_settings
from .utils import to_utc


# PUBLIC_INTERFACE
class Repository(ABC):
    """
    Abstract repository contract for task storage backends.

    Every backend serializes its operations, returns copies of stored records
    and orders listings by created_at descending (newest first).
    """

    @abstractmethod
    def initialize(self) -> None:
        """Prepare the storage medium. Idempotent; other methods call it lazily."""

    @abstractmethod
    def create(self, data: TaskCreate) -> str:
        """Insert a new task with a fresh id and creation timestamp. Return the id."""

    @abstractmethod
    def get(self, task_id: str) -> Optional[TaskEntity]:
        """Return a task by id, or None if not found."""

    @abstractmethod
    def get_all(self) -> List[TaskEntity]:
        """Return every task, most recently created first."""

    @abstractmethod
    def update(self, task_id: str, data: TaskUpdate) -> TaskEntity:
        """
        Apply the supplied fields of `data` and return the updated task.
        Raises NotFoundError if the id does not exist.
        """

    @abstractmethod
    def delete(self, task_id: str) -> bool:
        """Delete a task by id. Return True if deleted, False if it did not exist."""

    @abstractmethod
    def search(self, query: str) -> List[TaskEntity]:
        """
        Return tasks whose title or description contains `query`
        (case-insensitive), in get_all order. A blank query matches everything.
        """

    @abstractmethod
    def count(self) -> int:
        """Return the number of stored tasks."""


def new_task_id() -> str:
    """Return a fresh opaque task identifier."""
    return uuid.uuid4().hex


def apply_changes(entity: TaskEntity, changes: Mapping[str, Any]) -> TaskEntity:
    """Return a copy of `entity` with `changes` applied; id and created_at never change."""
    updated = entity.copy()
    for name, value in changes.items():
        if name in ("id", "created_at"):
            continue
        updated[name] = to_utc(value) if name == "due_date" else value  # type: ignore[literal-required]
    return updated


class InMemoryRepository(Repository):
    """
    Thread-safe in-memory repository suitable for testing and ephemeral runs.
    """

    def __init__(self, clock: Optional[Clock] = None) -> None:
        self._lock = RLock()
        self._items: Dict[str, TaskEntity] = {}
        self._clock = clock or SystemClock()

    def initialize(self) -> None:
        return None

    def _allocate_id(self) -> str:
        task_id = new_task_id()
        while task_id in self._items:
            task_id = new_task_id()
        return task_id

    def _ordered(self) -> List[TaskEntity]:
        # Newest insertion first among equal created_at values
        newest_first = list(reversed(list(self._items.values())))
        return sorted(newest_first, key=lambda t: t["created_at"], reverse=True)

    def create(self, data: TaskCreate) -> str:
        with self._lock:
            entity: TaskEntity = {
                "id": self._allocate_id(),
                "title": data.title,
                "description": data.description,
                "due_date": to_utc(data.due_date),
                "priority": data.priority,
                "is_completed": data.is_completed,
                "created_at": to_utc(self._clock.now()),
            }
            self._items[entity["id"]] = entity
            return entity["id"]

    def get(self, task_id: str) -> Optional[TaskEntity]:
        with self._lock:
            item = self._items.get(task_id)
            return None if item is None else item.copy()

    def get_all(self) -> List[TaskEntity]:
        with self._lock:
            return [t.copy() for t in self._ordered()]

    def update(self, task_id: str, data: TaskUpdate) -> TaskEntity:
        with self._lock:
            existing = self._items.get(task_id)
            if existing is None:
                raise NotFoundError(task_id)
            changes = data.changes()
            if not changes:
                return existing.copy()
            updated = apply_changes(existing, changes)
            self._items[task_id] = updated
            return updated.copy()

    def delete(self, task_id: str) -> bool:
        with self._lock:
            return self._items.pop(task_id, None) is not None

    def search(self, query: str) -> List[TaskEntity]:
        with self._lock:
            return [t.copy() for t in filter_by_text(self._ordered(), query)]

    def count(self) -> int:
        with self._lock:
            return len(self._items)


# PUBLIC_INTERFACE
def get_repository(settings: Optional[Settings] = None, clock: Optional[Clock] = None) -> Repository:
    """
    Build the repository configured by settings.
    - memory: InMemoryRepository
    - sqlite: SQLiteRepository at settings.sqlite_db_path
    """
    settings = settings or get_settings()
    if settings.persistence_backend == "sqlite":
        from .db import SQLiteRepository

        return SQLiteRepository(
            settings.sqlite_db_path,
            clock=clock,
            timeout=settings.sqlite_timeout_seconds,
        )
    return InMemoryRepository(clock=clock)
