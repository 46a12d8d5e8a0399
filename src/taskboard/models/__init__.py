"""SQLModel tables for users and tasks."""

from __future__ import annotations

from .common import TimestampMixin, utcnow
from .task import (
    DESCRIPTION_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    Task,
    TaskBase,
    TaskPriority,
    TaskStatus,
)
from .user import EMAIL_MAX_LENGTH, NAME_MAX_LENGTH, User, UserBase

__all__ = [
    "DESCRIPTION_MAX_LENGTH",
    "EMAIL_MAX_LENGTH",
    "NAME_MAX_LENGTH",
    "TITLE_MAX_LENGTH",
    "Task",
    "TaskBase",
    "TaskPriority",
    "TaskStatus",
    "TimestampMixin",
    "User",
    "UserBase",
    "utcnow",
]
