"""Queries over the ``tasks`` table."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..models import Task, TaskPriority, TaskStatus
from .base import BaseRepository


@dataclass(slots=True)
class TaskFilter:
    """Narrowing applied to an assignee's task list."""

    assigned_to_id: int
    status: TaskStatus | None = None
    priority: TaskPriority | None = None


class TaskRepository(BaseRepository[Task]):
    """Concrete repository encapsulating ``Task`` persistence operations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Task)

    async def get_fresh(self, task_id: int) -> Task | None:
        """Load a task, overwriting any stale copy already in the session."""
        result = await self.session.execute(
            select(Task)
            .where(Task.id == task_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_page(
        self,
        task_filter: TaskFilter,
        *,
        limit: int,
        offset: int,
    ) -> tuple[list[Task], int]:
        """Return one page of matching tasks, newest first, plus the total match count."""
        conditions = [Task.assigned_to_id == task_filter.assigned_to_id]
        if task_filter.status is not None:
            conditions.append(Task.status == task_filter.status)
        if task_filter.priority is not None:
            conditions.append(Task.priority == task_filter.priority)

        query = (
            select(Task)
            .where(*conditions)
            .order_by(Task.created_at.desc(), Task.id.desc())
            .limit(limit)
            .offset(offset)
        )
        count_query = select(func.count()).select_from(Task).where(*conditions)

        result = await self.session.execute(query)
        tasks = list(result.scalars().all())
        total_result = await self.session.execute(count_query)
        total = int(total_result.scalar_one())
        return tasks, total
