from __future__ import annotations

import pytest
from fastapi import FastAPI, status
from httpx import AsyncClient
from sqlalchemy import text

from taskboard.core.config import Settings
from taskboard.db import Database
from taskboard.main import create_app

pytestmark = pytest.mark.asyncio


async def test_health_endpoints(client: AsyncClient) -> None:
    health = await client.get("/healthz")
    ready = await client.get("/readyz")

    assert health.json() == {"status": "ok"}
    assert ready.status_code == status.HTTP_200_OK
    assert ready.json() == {"status": "ready"}


async def test_metadata_endpoint(client: AsyncClient, settings: Settings) -> None:
    response = await client.get("/api/metadata")

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {
        "name": settings.project_name,
        "environment": "test",
        "version": settings.version,
        "api_prefix": "/api",
    }


async def test_openapi_lists_task_routes(client: AsyncClient) -> None:
    response = await client.get("/api/openapi.json")

    paths = response.json()["paths"]
    assert {"/api/tasks", "/api/tasks/users", "/api/tasks/{task_id}"} <= paths.keys()
    assert "/tasks" not in paths


async def test_lifespan_creates_tables_and_disposes_owned_store() -> None:
    settings = Settings(
        environment="test",
        database_url="sqlite+aiosqlite:///:memory:",
        create_tables_on_startup=True,
    )
    app: FastAPI = create_app(settings=settings)
    database: Database = app.state.database

    async with app.router.lifespan_context(app):
        async with database.session() as session:
            result = await session.execute(text("SELECT count(*) FROM tasks"))
            assert result.scalar_one() == 0


async def test_response_carries_request_id(client: AsyncClient) -> None:
    response = await client.get("/healthz")

    assert len(response.headers["X-Request-ID"]) == 32
