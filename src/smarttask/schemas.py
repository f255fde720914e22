from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from .errors import ValidationError
from .models import Priority
from .utils import TimestampInput, parse_timestamp

TITLE_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500


def _check_title(v: str) -> str:
    s = v.strip()
    if not s:
        raise ValueError("title must not be empty")
    if len(s) > TITLE_MAX_LENGTH:
        raise ValueError(f"title must be at most {TITLE_MAX_LENGTH} characters")
    return s


def _check_description(v: str) -> str:
    if len(v) > DESCRIPTION_MAX_LENGTH:
        raise ValueError(f"description must be at most {DESCRIPTION_MAX_LENGTH} characters")
    return v


# PUBLIC_INTERFACE
class TaskCreate(BaseModel):
    """
    Schema for creating a new task.

    JSON uses camelCase names (dueDate, isCompleted); Python callers may pass
    either form. Unknown fields (such as an exported id or createdAt) are ignored.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "title": "Buy groceries",
                "description": "Milk, eggs, bread",
                "dueDate": "2025-03-01T18:00:00Z",
                "priority": "Medium",
                "isCompleted": False,
            }
        },
    )

    title: str = Field(..., description="Short title, 1..100 characters after trimming")
    description: str = Field(default="", description="Optional details, up to 500 characters")
    due_date: datetime = Field(
        ...,
        description="Due instant. Accepts ISO8601 date or datetime; dates are set to 00:00 UTC",
    )
    priority: Priority = Field(default=Priority.MEDIUM, description="Low, Medium or High")
    is_completed: bool = Field(default=False, description="Completion status flag")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """Strip whitespace and enforce 1..100 length."""
        return _check_title(v)

    @field_validator("description", mode="before")
    @classmethod
    def default_description(cls, v: Any) -> Any:
        """An absent description is stored as the empty string."""
        return "" if v is None else v

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: str) -> str:
        return _check_description(v)

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, v: TimestampInput) -> datetime:
        """Normalize due_date from str/date/datetime to an aware UTC datetime."""
        if v is None:
            raise ValueError("dueDate is required")
        return parse_timestamp(v)


# PUBLIC_INTERFACE
class TaskUpdate(BaseModel):
    """
    Schema for a partial update of an existing task.

    A field is part of the update only when it was supplied; `changes()`
    returns exactly those fields. Supplying null for a field is rejected.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "title": "Buy groceries and supplies",
                "priority": "High",
                "isCompleted": True,
            }
        },
    )

    title: Optional[str] = Field(default=None, description="Short title, 1..100 characters")
    description: Optional[str] = Field(default=None, description="Details, up to 500 characters")
    due_date: Optional[datetime] = Field(default=None, description="Due instant as ISO8601")
    priority: Optional[Priority] = Field(default=None, description="Low, Medium or High")
    is_completed: Optional[bool] = Field(default=None, description="Completion status flag")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: Optional[str]) -> Optional[str]:
        return v if v is None else _check_title(v)

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: Optional[str]) -> Optional[str]:
        return v if v is None else _check_description(v)

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, v: Optional[TimestampInput]) -> Optional[datetime]:
        return None if v is None else parse_timestamp(v)

    @model_validator(mode="after")
    def reject_explicit_nulls(self) -> "TaskUpdate":
        """Updates never silently default: a supplied field must carry a value."""
        nulled = sorted(name for name in self.model_fields_set if getattr(self, name) is None)
        if nulled:
            raise ValueError(f"fields cannot be null: {', '.join(nulled)}")
        return self

    # PUBLIC_INTERFACE
    def changes(self) -> Dict[str, Any]:
        """Return the supplied fields keyed by their Python names."""
        return {name: getattr(self, name) for name in self.model_fields_set}


# PUBLIC_INTERFACE
class CompletionUpdate(BaseModel):
    """Body for toggling the completion flag."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    is_completed: bool = Field(..., description="New completion status")


# PUBLIC_INTERFACE
class TaskOut(BaseModel):
    """
    Outbound task record, also the export format.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": "3f0c2d9e8b7a4c1d9e6f5a4b3c2d1e0f",
                "title": "Buy groceries",
                "description": "Milk, eggs, bread",
                "dueDate": "2025-03-01T18:00:00Z",
                "priority": "Medium",
                "isCompleted": False,
                "createdAt": "2025-02-27T09:15:30.123456Z",
            }
        },
    )

    id: str = Field(..., description="Unique identifier of the task")
    title: str = Field(..., description="Short title")
    description: str = Field(default="", description="Details, empty when absent")
    due_date: datetime = Field(..., description="Due instant as an ISO8601 datetime")
    priority: Priority = Field(..., description="Low, Medium or High")
    is_completed: bool = Field(..., description="Completion status flag")
    created_at: datetime = Field(..., description="Creation timestamp")


# PUBLIC_INTERFACE
class TaskView(TaskOut):
    """Task record decorated with the derived due status shown in task lists."""

    is_overdue: bool = Field(..., description="Due in the past and not completed")
    due_label: str = Field(..., description="Relative due date, e.g. 'Tomorrow' or 'In 3 days'")


# PUBLIC_INTERFACE
class ReminderOut(BaseModel):
    """A (id, title, dueDate) tuple the notification scheduler may act on."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    title: str
    due_date: datetime


# PUBLIC_INTERFACE
class ImportResult(BaseModel):
    """Outcome of an import: number of tasks created and their fresh ids."""

    imported: int
    ids: List[str]


_CREATE_LIST = TypeAdapter(List[TaskCreate])
_EXPORT_LIST = TypeAdapter(List[TaskOut])


def _validation_error(exc: PydanticValidationError, what: str) -> ValidationError:
    return ValidationError(
        f"Invalid {what}: {exc.error_count()} error(s)",
        exc.errors(include_url=False, include_context=False),
    )


# PUBLIC_INTERFACE
def validate_create(data: Union[TaskCreate, Mapping[str, Any]]) -> TaskCreate:
    """Return a validated TaskCreate, raising errors.ValidationError on bad input."""
    if isinstance(data, TaskCreate):
        return data
    try:
        return TaskCreate.model_validate(data)
    except PydanticValidationError as exc:
        raise _validation_error(exc, "task") from exc


# PUBLIC_INTERFACE
def validate_update(data: Union[TaskUpdate, Mapping[str, Any]]) -> TaskUpdate:
    """Return a validated TaskUpdate, raising errors.ValidationError on bad input."""
    if isinstance(data, TaskUpdate):
        return data
    try:
        return TaskUpdate.model_validate(data)
    except PydanticValidationError as exc:
        raise _validation_error(exc, "task update") from exc


# PUBLIC_INTERFACE
def parse_import(payload: Union[str, bytes]) -> List[TaskCreate]:
    """Parse a JSON array of task records into creation payloads."""
    try:
        return _CREATE_LIST.validate_json(payload)
    except PydanticValidationError as exc:
        raise _validation_error(exc, "import payload") from exc


# PUBLIC_INTERFACE
def dump_export(records: List[TaskOut]) -> str:
    """Serialize task records as an indented JSON array using camelCase names."""
    return _EXPORT_LIST.dump_json(records, by_alias=True, indent=2).decode("utf-8")
