from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import TypedDict


# PUBLIC_INTERFACE
class Priority(str, Enum):
    """Closed set of task priorities."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

    @property
    def rank(self) -> int:
        """Severity used for ordering: High(3) > Medium(2) > Low(1)."""
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {
    Priority.LOW: 1,
    Priority.MEDIUM: 2,
    Priority.HIGH: 3,
}


# PUBLIC_INTERFACE
class TaskEntity(TypedDict):
    """
    The stored task record as returned by every repository backend.

    Fields:
    - id: Opaque unique identifier, assigned at creation and immutable
    - title: Non-empty trimmed title (max 100 chars)
    - description: Free text, empty string when absent (max 500 chars)
    - due_date: Aware UTC datetime the task is due
    - priority: One of Priority
    - is_completed: Completion flag
    - created_at: Aware UTC creation timestamp, immutable
    """

    id: str
    title: str
    description: str
    due_date: datetime
    priority: Priority
    is_completed: bool
    created_at: datetime
