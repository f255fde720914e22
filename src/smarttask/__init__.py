"""
SmartTask task store.

Persistence, querying and lifecycle management for personal tasks. The
HTTP boundary is built with `smarttask.main.create_app`, e.g.
`uvicorn --factory smarttask.main:create_app`.
"""

from .errors import DataIntegrityError, NotFoundError, StorageError, TaskStoreError, ValidationError
from .models import Priority, TaskEntity
from .query import SortKey, TaskFilter, apply_query, filter_tasks, sort_tasks
from .repositories import InMemoryRepository, Repository, get_repository
from .service import Reminder, TaskService

__all__ = [
    "DataIntegrityError",
    "InMemoryRepository",
    "NotFoundError",
    "Priority",
    "Reminder",
    "Repository",
    "SortKey",
    "StorageError",
    "TaskEntity",
    "TaskFilter",
    "TaskService",
    "TaskStoreError",
    "ValidationError",
    "apply_query",
    "filter_tasks",
    "get_repository",
    "sort_tasks",
]
