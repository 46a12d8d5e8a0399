"""Domain service layer package."""

from __future__ import annotations

from .auth import AuthService
from .permissions import ensure_task_access, is_task_assignee
from .tasks import TaskPage, TaskService
from .users import UserService

__all__ = [
    "AuthService",
    "TaskPage",
    "TaskService",
    "UserService",
    "ensure_task_access",
    "is_task_assignee",
]
