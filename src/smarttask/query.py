"""
Sorting, filtering and due-date classification over task snapshots.

Every function here is pure: inputs are never mutated and results are new
lists, so sorting a result never reorders the store it came from.
"""
from __future__ import annotations

import unicodedata
from dataclasses import dataclass
from datetime import datetime, tzinfo
from enum import Enum
from typing import Iterable, List, Optional, Tuple, Union

from .models import Priority, TaskEntity

# English abbreviations regardless of process locale
_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


# PUBLIC_INTERFACE
class SortKey(str, Enum):
    """Orderings offered to task lists."""

    DATE = "date"
    PRIORITY = "priority"
    ALPHABETICAL = "alphabetical"


@dataclass(frozen=True)
class TaskFilter:
    """
    Filter criteria for task lists. None (or a blank text) disables a stage.
    """
    text: Optional[str] = None
    priority: Optional[Priority] = None
    completed: Optional[bool] = None


def _title_key(task: TaskEntity) -> Tuple[str, str]:
    folded = task["title"].casefold()
    # accents compare as their base letter first, then break ties
    base = "".join(
        c for c in unicodedata.normalize("NFKD", folded) if not unicodedata.combining(c)
    )
    return base, folded


# PUBLIC_INTERFACE
def sort_tasks(tasks: Iterable[TaskEntity], key: Union[SortKey, str, None]) -> List[TaskEntity]:
    """
    Return a new list of tasks ordered by `key`. Sorting is stable.
    - date: earliest due_date first
    - priority: High, Medium, Low
    - alphabetical: title, ignoring case and accents (accented after plain on ties)
    Unknown keys return the tasks in their original order.
    """
    items = list(tasks)
    try:
        sort_key = SortKey(key)
    except ValueError:
        return items

    if sort_key is SortKey.DATE:
        return sorted(items, key=lambda t: t["due_date"])
    if sort_key is SortKey.PRIORITY:
        return sorted(items, key=lambda t: -Priority(t["priority"]).rank)
    return sorted(items, key=_title_key)


# PUBLIC_INTERFACE
def filter_by_text(tasks: Iterable[TaskEntity], text: Optional[str]) -> List[TaskEntity]:
    """Keep tasks whose title or description contains `text`, ignoring case."""
    items = list(tasks)
    if not text or not text.strip():
        return items
    needle = text.lower()
    return [
        t for t in items
        if needle in t["title"].lower() or needle in (t["description"] or "").lower()
    ]


# PUBLIC_INTERFACE
def filter_by_priority(tasks: Iterable[TaskEntity], priority: Optional[Priority]) -> List[TaskEntity]:
    items = list(tasks)
    if priority is None:
        return items
    return [t for t in items if t["priority"] == priority]


# PUBLIC_INTERFACE
def filter_by_completion(tasks: Iterable[TaskEntity], completed: Optional[bool]) -> List[TaskEntity]:
    items = list(tasks)
    if completed is None:
        return items
    return [t for t in items if t["is_completed"] == completed]


# PUBLIC_INTERFACE
def filter_tasks(tasks: Iterable[TaskEntity], criteria: Optional[TaskFilter] = None) -> List[TaskEntity]:
    """
    Apply the text, priority and completion stages in that order.

    Each stage narrows the previous result and keeps its order.
    """
    c = criteria or TaskFilter()
    result = filter_by_text(tasks, c.text)
    result = filter_by_priority(result, c.priority)
    return filter_by_completion(result, c.completed)


# PUBLIC_INTERFACE
def apply_query(
    tasks: Iterable[TaskEntity],
    criteria: Optional[TaskFilter] = None,
    sort_key: Union[SortKey, str, None] = None,
) -> List[TaskEntity]:
    """Filter, then sort. Without a sort key the filtered order is kept."""
    return sort_tasks(filter_tasks(tasks, criteria), sort_key)


# PUBLIC_INTERFACE
def is_overdue(task: TaskEntity, now: datetime) -> bool:
    """A task is overdue when its due date has passed and it is not completed."""
    return task["due_date"] < now and not task["is_completed"]


# PUBLIC_INTERFACE
def can_schedule_reminder(due_date: datetime, now: datetime) -> bool:
    """Reminders may only be scheduled strictly in the future."""
    return due_date > now


# PUBLIC_INTERFACE
def relative_date_label(due_date: datetime, now: datetime, tz: Optional[tzinfo] = None) -> str:
    """
    Describe `due_date` relative to `now` by calendar days in `tz`.

    Both instants are converted to `tz` (default: the zone of `now`) and their
    dates compared, so 23:59 today and 00:01 the next day are one day apart.

    Returns 'Today', 'Tomorrow', 'Yesterday', 'N days ago', 'In N days'
    (up to a week ahead) or the month and day, e.g. 'Mar 3'.
    """
    zone = tz or now.tzinfo
    due_local = due_date.astimezone(zone)
    delta = (due_local.date() - now.astimezone(zone).date()).days

    if delta == 0:
        return "Today"
    if delta == 1:
        return "Tomorrow"
    if delta == -1:
        return "Yesterday"
    if delta < 0:
        return f"{abs(delta)} days ago"
    if delta <= 7:
        return f"In {delta} days"
    return f"{_MONTHS[due_local.month - 1]} {due_local.day}"
