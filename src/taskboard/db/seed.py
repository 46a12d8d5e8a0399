"""Seed script for populating development data."""

from __future__ import annotations

import asyncio
import logging
from datetime import date, timedelta

from ..core.config import get_settings
from ..core.logging import configure_logging
from ..models import TaskPriority, TaskStatus, User
from ..schemas import TaskCreate, TaskUpdate
from ..services import TaskService, UserService
from .session import Database

logger = logging.getLogger(__name__)

DEMO_PASSWORD = "demo-password"

DEMO_USERS = (
    ("Demo User", "demo@example.com"),
    ("Alex Teammate", "alex@example.com"),
)


async def _ensure_user(service: UserService, name: str, email: str) -> User:
    user = await service.get_user_by_email(email)
    if user is None:
        user = await service.create_user(name=name, email=email, password=DEMO_PASSWORD)
    return user


async def seed(database: Database) -> None:
    """Populate the store with demo users and tasks; a second run changes nothing."""

    async with database.session() as session:
        user_service = UserService(session)
        task_service = TaskService(session)

        demo, teammate = [await _ensure_user(user_service, name, email) for name, email in DEMO_USERS]

        existing = await task_service.list_tasks(demo, limit=1)
        if existing.total:
            logger.info("Seed data already present", extra={"user_id": demo.id})
            return

        today = date.today()
        await task_service.create_task(
            demo,
            TaskCreate(
                title="Set up local environment",
                description="Install dependencies and run the application.",
                priority=TaskPriority.HIGH,
                due_date=today + timedelta(days=1),
            ),
        )
        await task_service.create_task(
            demo,
            TaskCreate(
                title="Draft initial tasks",
                description="Outline work items to deliver the first release.",
            ),
        )
        celebrate = await task_service.create_task(
            demo,
            TaskCreate(
                title="Celebrate first release",
                priority=TaskPriority.LOW,
                due_date=today + timedelta(days=14),
            ),
        )
        await task_service.update_task(demo, celebrate.id, TaskUpdate(status=TaskStatus.COMPLETED))
        await task_service.create_task(
            demo,
            TaskCreate(
                title="Review onboarding notes",
                description="Assigned by the demo user; only the assignee can open it.",
                assigned_to=teammate.id,
            ),
        )
        logger.info("Seed data created", extra={"user_id": demo.id})


async def _run() -> None:
    settings = get_settings()
    configure_logging(settings)
    database = Database.from_settings(settings)
    try:
        if settings.create_tables_on_startup:
            await database.create_all()
        await seed(database)
    finally:
        await database.dispose()


def main() -> None:
    """Entry-point hook for the ``taskboard-seed`` console script."""
    asyncio.run(_run())


if __name__ == "__main__":  # pragma: no cover - manual execution entry-point
    main()
