from __future__ import annotations

import pytest

from taskboard.db import Database
from taskboard.db.seed import DEMO_USERS, seed
from taskboard.repositories import UserRepository
from taskboard.services import TaskService

pytestmark = pytest.mark.asyncio


async def test_seed_is_idempotent(database: Database) -> None:
    await seed(database)
    await seed(database)

    async with database.session() as session:
        users = await UserRepository(session).list_directory()
        assert sorted(user.email for user in users) == sorted(email for _, email in DEMO_USERS)

        demo = next(user for user in users if user.email == "demo@example.com")
        teammate = next(user for user in users if user.email == "alex@example.com")
        service = TaskService(session)
        demo_tasks = await service.list_tasks(demo)
        teammate_tasks = await service.list_tasks(teammate)

    assert demo_tasks.total == 3
    assert teammate_tasks.total == 1
    assert teammate_tasks.tasks[0].created_by_id == demo.id
