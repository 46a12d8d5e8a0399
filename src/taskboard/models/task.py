"""Task records and their enumerations."""

from datetime import date
from enum import Enum
from typing import TYPE_CHECKING

import sqlalchemy as sa
from sqlmodel import Field, Relationship, SQLModel

from .common import TimestampMixin

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from .user import User

TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 1000


class TaskStatus(str, Enum):
    """Either value may follow the other; there is no workflow."""

    PENDING = "pending"
    COMPLETED = "completed"

    @property
    def toggled(self) -> "TaskStatus":
        return TaskStatus.PENDING if self is TaskStatus.COMPLETED else TaskStatus.COMPLETED


class TaskPriority(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


def _enum_values(enum_cls: type[Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class TaskBase(SQLModel, table=False):
    """Columns shared by every task representation."""

    title: str = Field(
        max_length=TITLE_MAX_LENGTH,
        sa_column=sa.Column(sa.String(length=TITLE_MAX_LENGTH), nullable=False),
    )
    description: str | None = Field(
        default=None,
        sa_column=sa.Column(sa.String(length=DESCRIPTION_MAX_LENGTH), nullable=True),
    )
    due_date: date | None = Field(
        default=None,
        sa_column=sa.Column(sa.Date(), nullable=True),
    )
    status: TaskStatus = Field(
        default=TaskStatus.PENDING,
        sa_column=sa.Column(
            sa.Enum(
                TaskStatus,
                name="task_status",
                native_enum=False,
                validate_strings=True,
                values_callable=_enum_values,
            ),
            nullable=False,
            server_default=TaskStatus.PENDING.value,
        ),
    )
    priority: TaskPriority = Field(
        default=TaskPriority.MEDIUM,
        sa_column=sa.Column(
            sa.Enum(
                TaskPriority,
                name="task_priority",
                native_enum=False,
                validate_strings=True,
                values_callable=_enum_values,
            ),
            nullable=False,
            server_default=TaskPriority.MEDIUM.value,
        ),
    )
    assigned_to_id: int = Field(
        sa_column=sa.Column(
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
    )
    created_by_id: int = Field(
        sa_column=sa.Column(
            sa.Integer(),
            sa.ForeignKey("users.id"),
            nullable=False,
        ),
    )


class Task(TaskBase, TimestampMixin, table=True):
    """Persistent task; ``assigned_to`` and ``created_by`` load eagerly."""

    __tablename__ = "tasks"
    __table_args__ = (
        sa.CheckConstraint("length(title) > 0", name="ck_tasks_title_length"),
        sa.Index("ix_tasks_assigned_to_created_at", "assigned_to_id", "created_at"),
    )

    id: int | None = Field(default=None, primary_key=True)
    assigned_to: "User" = Relationship(
        sa_relationship_kwargs={
            "foreign_keys": "Task.assigned_to_id",
            "lazy": "selectin",
        },
    )
    created_by: "User" = Relationship(
        sa_relationship_kwargs={
            "foreign_keys": "Task.created_by_id",
            "lazy": "selectin",
        },
    )


__all__ = [
    "DESCRIPTION_MAX_LENGTH",
    "TITLE_MAX_LENGTH",
    "Task",
    "TaskBase",
    "TaskPriority",
    "TaskStatus",
]
