from __future__ import annotations

from typing import Any, List, Optional


# PUBLIC_INTERFACE
class TaskStoreError(Exception):
    """Base class for every failure raised by the task store core."""


# PUBLIC_INTERFACE
class ValidationError(TaskStoreError):
    """
    Malformed task input (empty title, invalid priority, bad due date...).

    `errors` carries the underlying pydantic error list when the failure
    originated from schema validation.
    """

    def __init__(self, message: str, errors: Optional[List[Any]] = None) -> None:
        super().__init__(message)
        self.errors: List[Any] = list(errors or [])


# PUBLIC_INTERFACE
class NotFoundError(TaskStoreError):
    """An update targeted a task id that does not exist."""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id


# PUBLIC_INTERFACE
class StorageError(TaskStoreError):
    """The storage medium is unavailable or an I/O operation failed."""


# PUBLIC_INTERFACE
class DataIntegrityError(TaskStoreError):
    """A stored record violates the task schema when read back."""
