from __future__ import annotations

import re
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass
from itertools import count

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlmodel.ext.asyncio.session import AsyncSession

from taskboard.core.config import Settings
from taskboard.db import Database
from taskboard.main import create_app
from taskboard.models import User
from taskboard.services import AuthService, UserService

DEFAULT_PASSWORD = "StrongPass123!"

_CSRF_PATTERN = re.compile(r'name="csrf_token" value="([^"]+)"')


@dataclass(slots=True)
class AuthenticatedUser:
    user: User
    email: str
    password: str
    access_token: str

    @property
    def id(self) -> int:
        if self.user.id is None:  # pragma: no cover - defensive guard
            raise RuntimeError("Persisted user is missing an id.")
        return self.user.id

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.access_token}"}


UserFactory = Callable[..., Awaitable[AuthenticatedUser]]


def extract_csrf_token(html: str) -> str:
    match = _CSRF_PATTERN.search(html)
    assert match is not None, "Expected a CSRF token in the rendered form"
    return match.group(1)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        environment="test",
        database_url="sqlite+aiosqlite:///:memory:",
        jwt_secret_key="test-jwt-secret",
        session_secret_key="test-session-secret",
        create_tables_on_startup=False,
    )


@pytest_asyncio.fixture
async def database(settings: Settings) -> AsyncIterator[Database]:
    store = Database.from_settings(settings)
    await store.create_all()
    try:
        yield store
    finally:
        await store.dispose()


@pytest_asyncio.fixture
async def session(database: Database) -> AsyncIterator[AsyncSession]:
    async with database.session() as db_session:
        yield db_session


@pytest.fixture
def app(settings: Settings, database: Database) -> FastAPI:
    return create_app(settings=settings, database=database)


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://testserver") as http_client:
        yield http_client


@pytest.fixture
def user_factory(database: Database, settings: Settings) -> UserFactory:
    """Persist a user in its own session and mint a bearer token for it."""

    counter = count(1)

    async def _factory(
        *,
        name: str | None = None,
        email: str | None = None,
        password: str = DEFAULT_PASSWORD,
    ) -> AuthenticatedUser:
        index = next(counter)
        actual_email = email or f"user-{index}@example.com"
        async with database.session() as db_session:
            user = await UserService(db_session).create_user(
                name=name or f"User {index}",
                email=actual_email,
                password=password,
            )
            token = AuthService(db_session, settings).issue_access_token(user)
        return AuthenticatedUser(
            user=user,
            email=actual_email,
            password=password,
            access_token=token.token,
        )

    return _factory


@pytest.fixture
def browser_login(client: AsyncClient) -> Callable[[AuthenticatedUser], Awaitable[None]]:
    """Sign ``user`` in through the HTML form so the client carries a session cookie."""

    async def _login(user: AuthenticatedUser) -> None:
        form_page = await client.get("/auth/login")
        response = await client.post(
            "/auth/login",
            data={
                "email": user.email,
                "password": user.password,
                "csrf_token": extract_csrf_token(form_page.text),
            },
        )
        assert response.status_code == 303, response.text

    return _login
