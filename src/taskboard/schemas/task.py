"""Task payloads and the input rules they enforce.

Each rule raises ``ValueError`` with the exact message shown to users, so the
same models validate JSON bodies and the HTML forms alike. Pydantic evaluates
every field independently, so one request reports all of its violations.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any, TypeVar

from pydantic import ConfigDict, Field, field_validator

from ..models import DESCRIPTION_MAX_LENGTH, TITLE_MAX_LENGTH, TaskPriority, TaskStatus
from .common import WireModel
from .user import UserPublic

TITLE_REQUIRED_MESSAGE = "Task title is required"
TITLE_EMPTY_MESSAGE = "Task title cannot be empty"
TITLE_LENGTH_MESSAGE = f"Title must be between 1 and {TITLE_MAX_LENGTH} characters"
DESCRIPTION_LENGTH_MESSAGE = f"Description cannot exceed {DESCRIPTION_MAX_LENGTH} characters"
DUE_DATE_MESSAGE = "Please provide a valid date"
PRIORITY_MESSAGE = "Priority must be Low, Medium, or High"
STATUS_MESSAGE = "Status must be pending or completed"
ASSIGNEE_ID_MESSAGE = "Please provide a valid user ID"

EnumT = TypeVar("EnumT", bound=Enum)
_MAX_USER_ID = 2**63 - 1

TASK_READ_EXAMPLE = {
    "id": 7,
    "title": "Prepare sprint review",
    "description": "Collect demo notes from the team.",
    "dueDate": "2024-06-14",
    "status": TaskStatus.PENDING.value,
    "priority": TaskPriority.HIGH.value,
    "assignedTo": {"id": 2, "name": "Ada Lovelace", "email": "ada@example.com"},
    "createdBy": {"id": 1, "name": "Grace Hopper", "email": "grace@example.com"},
    "createdAt": "2024-06-01T09:30:00Z",
    "updatedAt": "2024-06-01T09:30:00Z",
}


def clean_title(value: object, *, blank_message: str) -> str:
    if value is None:
        raise ValueError(blank_message)
    if not isinstance(value, str):
        raise ValueError(TITLE_LENGTH_MESSAGE)
    title = value.strip()
    if not title:
        raise ValueError(blank_message)
    if len(title) > TITLE_MAX_LENGTH:
        raise ValueError(TITLE_LENGTH_MESSAGE)
    return title


def clean_description(value: object) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(DESCRIPTION_LENGTH_MESSAGE)
    description = value.strip()
    if len(description) > DESCRIPTION_MAX_LENGTH:
        raise ValueError(DESCRIPTION_LENGTH_MESSAGE)
    return description


def parse_due_date(value: object) -> date | None:
    """Accept an ISO-8601 date or date-time and keep only the calendar date."""

    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        except ValueError:
            pass
    raise ValueError(DUE_DATE_MESSAGE)


def parse_choice(enum_cls: type[EnumT], value: object, message: str) -> EnumT:
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        try:
            return enum_cls(value.strip())
        except ValueError:
            pass
    raise ValueError(message)


def parse_user_id(value: object) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        candidate = value
    elif isinstance(value, str) and value.strip().isascii() and value.strip().isdigit():
        candidate = int(value.strip())
    else:
        raise ValueError(ASSIGNEE_ID_MESSAGE)
    if not 0 < candidate <= _MAX_USER_ID:
        raise ValueError(ASSIGNEE_ID_MESSAGE)
    return candidate


class TaskCreate(WireModel):
    """Fields a caller may supply when creating a task.

    ``assignedTo`` defaults to the caller; ``status`` always starts as
    ``pending`` and is not accepted here.
    """

    title: str = Field(default="", validate_default=True, max_length=TITLE_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    due_date: date | None = None
    priority: TaskPriority = TaskPriority.MEDIUM
    assigned_to: int | None = None

    @field_validator("title", mode="before")
    @classmethod
    def _validate_title(cls, value: object) -> str:
        return clean_title(value, blank_message=TITLE_REQUIRED_MESSAGE)

    @field_validator("description", mode="before")
    @classmethod
    def _validate_description(cls, value: object) -> str | None:
        return clean_description(value)

    @field_validator("due_date", mode="before")
    @classmethod
    def _validate_due_date(cls, value: object) -> date | None:
        return parse_due_date(value)

    @field_validator("priority", mode="before")
    @classmethod
    def _validate_priority(cls, value: object) -> TaskPriority:
        return parse_choice(TaskPriority, value, PRIORITY_MESSAGE)

    @field_validator("assigned_to", mode="before")
    @classmethod
    def _validate_assignee(cls, value: object) -> int | None:
        if value is None or value == "":
            return None
        return parse_user_id(value)


class TaskUpdate(WireModel):
    """A partial update: only keys present in the payload are applied.

    Presence is tracked by pydantic (``model_fields_set``), not by truthiness,
    so ``{"description": ""}`` clears the description while omitting the key
    leaves it untouched. ``description`` and ``dueDate`` may also be cleared
    with ``null``; the remaining fields reject ``null``.
    """

    title: str | None = Field(default=None, max_length=TITLE_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    due_date: date | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    assigned_to: int | None = None

    @field_validator("title", mode="before")
    @classmethod
    def _validate_title(cls, value: object) -> str:
        return clean_title(value, blank_message=TITLE_EMPTY_MESSAGE)

    @field_validator("description", mode="before")
    @classmethod
    def _validate_description(cls, value: object) -> str | None:
        return clean_description(value)

    @field_validator("due_date", mode="before")
    @classmethod
    def _validate_due_date(cls, value: object) -> date | None:
        return parse_due_date(value)

    @field_validator("status", mode="before")
    @classmethod
    def _validate_status(cls, value: object) -> TaskStatus:
        return parse_choice(TaskStatus, value, STATUS_MESSAGE)

    @field_validator("priority", mode="before")
    @classmethod
    def _validate_priority(cls, value: object) -> TaskPriority:
        return parse_choice(TaskPriority, value, PRIORITY_MESSAGE)

    @field_validator("assigned_to", mode="before")
    @classmethod
    def _validate_assignee(cls, value: object) -> int:
        return parse_user_id(value)

    def changes(self) -> dict[str, Any]:
        """Return the supplied fields keyed by attribute name."""
        return self.model_dump(exclude_unset=True)


class TaskRead(WireModel):
    """A task with both user references expanded."""

    model_config = ConfigDict(json_schema_extra={"example": TASK_READ_EXAMPLE})

    id: int
    title: str
    description: str | None = None
    due_date: date | None = None
    status: TaskStatus
    priority: TaskPriority
    assigned_to: UserPublic
    created_by: UserPublic
    created_at: datetime
    updated_at: datetime


class PaginationMeta(WireModel):
    current_page: int
    total_pages: int
    total_tasks: int
    limit: int
    has_next: bool
    has_prev: bool


class TaskListResponse(WireModel):
    tasks: list[TaskRead]
    pagination: PaginationMeta


class TaskMutationResponse(WireModel):
    message: str
    task: TaskRead


__all__ = [
    "ASSIGNEE_ID_MESSAGE",
    "DESCRIPTION_LENGTH_MESSAGE",
    "DUE_DATE_MESSAGE",
    "PRIORITY_MESSAGE",
    "PaginationMeta",
    "STATUS_MESSAGE",
    "TITLE_EMPTY_MESSAGE",
    "TITLE_LENGTH_MESSAGE",
    "TITLE_REQUIRED_MESSAGE",
    "TaskCreate",
    "TaskListResponse",
    "TaskMutationResponse",
    "TaskRead",
    "TaskUpdate",
]
