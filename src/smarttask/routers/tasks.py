from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status

from ..errors import NotFoundError
from ..models import Priority
from ..query import TaskFilter
from ..schemas import CompletionUpdate, ImportResult, ReminderOut, TaskCreate, TaskOut, TaskUpdate, TaskView
from ..service import TaskService

router = APIRouter(
    prefix="/api/v1/tasks",
    tags=["tasks"],
)


def get_task_service(request: Request) -> TaskService:
    """
    Dependency returning the TaskService created once by create_app.
    """
    return request.app.state.task_service


# PUBLIC_INTERFACE
@router.post(
    "/",
    response_model=TaskOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Task",
    description="Create a new task and return the stored record.",
    responses={
        201: {"description": "Task created successfully"},
        422: {"description": "Validation error"},
    },
)
def create_task(payload: TaskCreate, service: TaskService = Depends(get_task_service)) -> TaskOut:
    """
    Create a new task. The caller schedules its reminder from the returned id and dueDate.
    """
    task_id = service.create_task(payload)
    created = service.get_task(task_id)
    if created is None:
        raise NotFoundError(task_id)
    return TaskOut(**created)


# PUBLIC_INTERFACE
@router.get(
    "/",
    response_model=List[TaskView],
    summary="List Tasks",
    description=(
        "List tasks with optional filters and ordering.\n\n"
        "Query parameters:\n"
        "- q: text contained in title or description (case-insensitive)\n"
        "- priority: Low, Medium or High\n"
        "- completed: filter by completion status\n"
        "- sort: date, priority or alphabetical; omitted keeps newest-first\n\n"
        "Filters are combined with AND. Each item carries isOverdue and dueLabel."
    ),
    responses={
        200: {"description": "List retrieved successfully"},
        422: {"description": "Invalid query parameters"},
    },
)
def list_tasks(
    q: Optional[str] = Query(None, description="Search text for title/description"),
    priority: Optional[Priority] = Query(None, description="Filter by priority"),
    completed: Optional[bool] = Query(None, description="Filter by completion status"),
    sort: Optional[str] = Query(None, description="Sort by date, priority or alphabetical"),
    service: TaskService = Depends(get_task_service),
) -> List[TaskView]:
    """
    List tasks after filtering and sorting.
    """
    criteria = TaskFilter(text=q, priority=priority, completed=completed)
    return [service.view(t) for t in service.list_tasks(criteria, sort)]


# PUBLIC_INTERFACE
@router.get(
    "/search",
    response_model=List[TaskOut],
    summary="Search Tasks",
    description="Case-insensitive substring search over title and description, newest first.",
)
def search_tasks(
    q: str = Query("", description="Text to look for"),
    service: TaskService = Depends(get_task_service),
) -> List[TaskOut]:
    return [TaskOut(**t) for t in service.search_tasks(q)]


# PUBLIC_INTERFACE
@router.get(
    "/export",
    summary="Export Tasks",
    description="Return every task as a JSON array using the persisted field names.",
    response_class=Response,
    responses={200: {"content": {"application/json": {}}, "description": "Exported tasks"}},
)
def export_tasks(service: TaskService = Depends(get_task_service)) -> Response:
    return Response(content=service.export_tasks(), media_type="application/json")


# PUBLIC_INTERFACE
@router.post(
    "/import",
    response_model=ImportResult,
    status_code=status.HTTP_201_CREATED,
    summary="Import Tasks",
    description=(
        "Re-create tasks from an exported JSON array. Every record is validated first; "
        "imported tasks get fresh ids and creation timestamps."
    ),
)
def import_tasks(
    records: List[TaskCreate],
    service: TaskService = Depends(get_task_service),
) -> ImportResult:
    ids = service.import_records(records)
    return ImportResult(imported=len(ids), ids=ids)


# PUBLIC_INTERFACE
@router.get(
    "/reminders",
    response_model=List[ReminderOut],
    summary="Pending Reminders",
    description="Open tasks due in the future, soonest first, for the notification scheduler.",
)
def pending_reminders(service: TaskService = Depends(get_task_service)) -> List[ReminderOut]:
    return [
        ReminderOut(id=r.task_id, title=r.title, due_date=r.due_date)
        for r in service.pending_reminders()
    ]


# PUBLIC_INTERFACE
@router.get(
    "/{task_id}",
    response_model=TaskView,
    summary="Get Task",
    description="Get a single task by ID.",
    responses={
        200: {"description": "Task found"},
        404: {"description": "Task not found"},
    },
)
def get_task(task_id: str, service: TaskService = Depends(get_task_service)) -> TaskView:
    item = service.get_task(task_id)
    if item is None:
        raise NotFoundError(task_id)
    return service.view(item)


# PUBLIC_INTERFACE
@router.patch(
    "/{task_id}",
    response_model=TaskOut,
    summary="Update Task",
    description="Partially update fields of a task; omitted fields are left unchanged.",
    responses={
        200: {"description": "Task updated"},
        404: {"description": "Task not found"},
    },
)
def patch_task(
    task_id: str,
    payload: TaskUpdate,
    service: TaskService = Depends(get_task_service),
) -> TaskOut:
    return TaskOut(**service.update_task(task_id, payload))


# PUBLIC_INTERFACE
@router.put(
    "/{task_id}/completion",
    response_model=TaskOut,
    summary="Set Completion",
    description="Mark a task completed or reopen it. Repeating the current value is a no-op.",
    responses={
        200: {"description": "Completion updated"},
        404: {"description": "Task not found"},
    },
)
def set_completion(
    task_id: str,
    payload: CompletionUpdate,
    service: TaskService = Depends(get_task_service),
) -> TaskOut:
    return TaskOut(**service.set_completed(task_id, payload.is_completed))


# PUBLIC_INTERFACE
@router.delete(
    "/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Task",
    description="Delete a task by ID. Deleting a task that does not exist also succeeds.",
    responses={204: {"description": "Task deleted or already absent"}},
)
def delete_task(task_id: str, service: TaskService = Depends(get_task_service)) -> Response:
    service.delete_task(task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
