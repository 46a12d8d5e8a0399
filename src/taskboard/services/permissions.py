"""Who may act on a task.

A task belongs to whoever it is currently assigned to. Its creator keeps no
special rights once the task is assigned elsewhere, and nobody else has any.
Every read, update and delete goes through ``ensure_task_access``.
"""

from __future__ import annotations

from ..errors import AuthorizationError
from ..models import Task, User


def is_task_assignee(caller: User, task: Task) -> bool:
    return caller.id is not None and task.assigned_to_id == caller.id


def ensure_task_access(caller: User, task: Task) -> None:
    if not is_task_assignee(caller, task):
        raise AuthorizationError()


__all__ = ["ensure_task_access", "is_task_assignee"]
