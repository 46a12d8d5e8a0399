"""Service layer encapsulating task-related operations."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TypeVar

from sqlmodel.ext.asyncio.session import AsyncSession

from ..errors import AuthorizationError, NotFoundError, ValidationError
from ..models import Task, TaskPriority, TaskStatus, User
from ..repositories import TaskFilter, TaskRepository, UserRepository
from ..schemas.task import TaskCreate, TaskUpdate
from .permissions import ensure_task_access

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
# Largest value a signed 64-bit SQL integer (ids, LIMIT, OFFSET) can hold.
_SQL_INT_MAX = 2**63 - 1
_SQL_INT_DIGITS = len(str(_SQL_INT_MAX))

TASK_NOT_FOUND_MESSAGE = "Task not found"
ASSIGNEE_NOT_FOUND_MESSAGE = "Assigned user not found"

EnumT = TypeVar("EnumT", bound=Enum)

# Update payload fields whose column name differs from the schema attribute.
_UPDATE_COLUMNS = {"assigned_to": "assigned_to_id"}


@dataclass(slots=True)
class TaskPage:
    """One page of an assignee's tasks plus the derived pagination flags."""

    tasks: list[Task]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return -(-self.total // self.limit)

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1


def _parse_digits(text: str) -> int | None:
    """Parse an ASCII digit string, saturating at the largest SQL integer."""

    if not (text.isascii() and text.isdigit()):
        return None
    significant = text.lstrip("0") or "0"
    if len(significant) > _SQL_INT_DIGITS:
        return _SQL_INT_MAX + 1
    return int(significant)


def coerce_positive_int(raw: object, default: int) -> int:
    """Return ``raw`` as a positive integer, or ``default`` when it is not one.

    Values beyond the SQL integer range are clamped to it.
    """

    if isinstance(raw, bool):
        return default
    if isinstance(raw, str):
        raw = _parse_digits(raw.strip())
    if isinstance(raw, int) and raw > 0:
        return min(raw, _SQL_INT_MAX)
    return default


def parse_task_id(raw: object) -> int | None:
    """Return the numeric id, or ``None`` for anything that cannot name a task."""

    if isinstance(raw, bool):
        return None
    if isinstance(raw, str):
        raw = _parse_digits(raw.strip())
    if isinstance(raw, int) and 0 < raw <= _SQL_INT_MAX:
        return raw
    return None


def _parse_filter(enum_cls: type[EnumT], raw: object) -> tuple[bool, EnumT | None]:
    """Return ``(usable, value)``; an unrecognised value can match no task."""

    if raw is None or raw == "":
        return True, None
    if isinstance(raw, enum_cls):
        return True, raw
    if isinstance(raw, str):
        try:
            return True, enum_cls(raw.strip())
        except ValueError:
            return False, None
    return False, None


def _require_user_id(user: User) -> int:
    if user.id is None:  # pragma: no cover - callers are always persisted users
        raise ValueError("Caller must be a persisted user.")
    return user.id


class TaskService:
    """Business rules for tasks, scoped to the calling user.

    Every operation takes the authenticated caller explicitly. Reads, updates
    and deletes are allowed only for the task's current assignee; creation may
    assign to any existing user.
    """

    def __init__(self, session: AsyncSession, *, default_page_size: int = DEFAULT_PAGE_SIZE) -> None:
        self._session = session
        self._repository = TaskRepository(session)
        self._user_repository = UserRepository(session)
        self._default_page_size = default_page_size

    async def list_tasks(
        self,
        caller: User,
        *,
        status: TaskStatus | str | None = None,
        priority: TaskPriority | str | None = None,
        page: object = None,
        limit: object = None,
    ) -> TaskPage:
        """Return the caller's tasks, newest first, one page at a time.

        ``page`` and ``limit`` fall back to their defaults unless they are
        positive integers (or digit strings). Empty filters mean "any".
        """

        page_number = coerce_positive_int(page, DEFAULT_PAGE)
        page_size = coerce_positive_int(limit, self._default_page_size)

        status_ok, status_value = _parse_filter(TaskStatus, status)
        priority_ok, priority_value = _parse_filter(TaskPriority, priority)
        if not (status_ok and priority_ok):
            return TaskPage(tasks=[], total=0, page=page_number, limit=page_size)

        tasks, total = await self._repository.list_page(
            TaskFilter(
                assigned_to_id=_require_user_id(caller),
                status=status_value,
                priority=priority_value,
            ),
            limit=page_size,
            # Pages past the largest offset are necessarily empty.
            offset=min((page_number - 1) * page_size, _SQL_INT_MAX),
        )
        return TaskPage(tasks=tasks, total=total, page=page_number, limit=page_size)

    async def get_task(self, caller: User, task_id: object) -> Task:
        """Return a task the caller is assigned to."""
        return await self._load_accessible_task(caller, task_id)

    async def create_task(self, caller: User, payload: TaskCreate) -> Task:
        caller_id = _require_user_id(caller)
        assignee_id = payload.assigned_to if payload.assigned_to is not None else caller_id
        if assignee_id != caller_id:
            await self._require_assignee(assignee_id)

        task = Task(
            title=payload.title,
            description=payload.description,
            due_date=payload.due_date,
            priority=payload.priority,
            status=TaskStatus.PENDING,
            assigned_to_id=assignee_id,
            created_by_id=caller_id,
        )
        await self._repository.add(task)
        await self._session.commit()
        logger.info(
            "Task created",
            extra={"task_id": task.id, "user_id": caller_id, "assigned_to": assignee_id},
        )
        return await self._reload(task)

    async def update_task(self, caller: User, task_id: object, payload: TaskUpdate) -> Task:
        """Apply exactly the fields present in ``payload``."""

        task = await self._load_accessible_task(caller, task_id)
        changes = payload.changes()

        new_assignee = changes.get("assigned_to")
        if new_assignee is not None and new_assignee != task.assigned_to_id:
            await self._require_assignee(new_assignee)

        for field_name, value in changes.items():
            setattr(task, _UPDATE_COLUMNS.get(field_name, field_name), value)

        await self._session.commit()
        logger.info(
            "Task updated",
            extra={"task_id": task.id, "user_id": caller.id, "fields": sorted(changes)},
        )
        return await self._reload(task)

    async def delete_task(self, caller: User, task_id: object) -> None:
        task = await self._load_accessible_task(caller, task_id)
        deleted_id = task.id
        await self._repository.delete(task)
        await self._session.commit()
        logger.info("Task deleted", extra={"task_id": deleted_id, "user_id": caller.id})

    async def list_users(self) -> list[User]:
        """Every registered user, for assignment pickers."""
        return await self._user_repository.list_directory()

    async def _load_accessible_task(self, caller: User, task_id: object) -> Task:
        parsed_id = parse_task_id(task_id)
        task = await self._repository.get(parsed_id) if parsed_id is not None else None
        if task is None:
            raise NotFoundError(TASK_NOT_FOUND_MESSAGE)
        try:
            ensure_task_access(caller, task)
        except AuthorizationError:
            logger.warning(
                "Task access denied",
                extra={"task_id": task.id, "user_id": caller.id},
            )
            raise
        return task

    async def _require_assignee(self, user_id: int) -> User:
        assignee = await self._user_repository.get(user_id)
        if assignee is None:
            raise ValidationError.for_field("assignedTo", ASSIGNEE_NOT_FOUND_MESSAGE)
        return assignee

    async def _reload(self, task: Task) -> Task:
        if task.id is None:  # pragma: no cover - the task was just flushed
            raise NotFoundError(TASK_NOT_FOUND_MESSAGE)
        fresh = await self._repository.get_fresh(task.id)
        if fresh is None:  # pragma: no cover - removed concurrently
            raise NotFoundError(TASK_NOT_FOUND_MESSAGE)
        return fresh


__all__ = [
    "ASSIGNEE_NOT_FOUND_MESSAGE",
    "DEFAULT_PAGE",
    "DEFAULT_PAGE_SIZE",
    "TASK_NOT_FOUND_MESSAGE",
    "TaskPage",
    "TaskService",
    "coerce_positive_int",
    "parse_task_id",
]
