"""Reusable FastAPI dependencies."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from pydantic import ValidationError
from sqlmodel.ext.asyncio.session import AsyncSession

from .core.config import Settings, get_settings
from .core.security import decode_token
from .core.session import get_session_user_id, logout_user
from .db.session import Database
from .models import User
from .repositories import UserRepository
from .schemas import UserPublic
from .schemas.auth import TokenPayload
from .services import TaskService


def get_app_settings(request: Request) -> Settings:
    """Return the settings the running application was built with."""

    return getattr(request.app.state, "settings", None) or get_settings()


SettingsDependency = Annotated[Settings, Depends(get_app_settings)]

_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


def get_database(request: Request) -> Database:
    """Return the store handle the application was started with."""

    return request.app.state.database


async def get_db_session(
    database: Annotated[Database, Depends(get_database)],
) -> AsyncIterator[AsyncSession]:
    """Borrow a session for the duration of one request."""

    async with database.session() as session:
        yield session


DatabaseSessionDependency = Annotated[AsyncSession, Depends(get_db_session)]


def get_task_service(
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
) -> TaskService:
    return TaskService(session, default_page_size=settings.default_page_size)


TaskServiceDependency = Annotated[TaskService, Depends(get_task_service)]


def _unauthorized(detail: str = "Could not validate credentials.") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _decode_access_token(token: str, settings: Settings) -> TokenPayload:
    try:
        payload = decode_token(
            token=token,
            secret=settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
        )
        return TokenPayload.model_validate(payload)
    except (JWTError, ValidationError) as exc:
        raise _unauthorized() from exc


async def get_current_user(
    token: Annotated[str, Depends(_oauth2_scheme)],
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
) -> User:
    """Resolve the bearer token to a persisted user or fail with 401."""

    token_payload = _decode_access_token(token, settings)
    if not token_payload.sub.isdigit():
        raise _unauthorized()
    user = await UserRepository(session).get(int(token_payload.sub))
    if user is None:
        raise _unauthorized()
    return user


CurrentUserDependency = Annotated[User, Depends(get_current_user)]


async def get_session_user(request: Request, session: DatabaseSessionDependency) -> User | None:
    """Return the browser session's user, clearing sessions for vanished accounts."""

    user_id = get_session_user_id(request.session)
    if user_id is None:
        return None
    user = await UserRepository(session).get(user_id)
    if user is None:
        logout_user(request.session)
        return None
    # Templates get a detached copy; a rollback later in the request expires ORM rows.
    request.state.current_user = UserPublic.model_validate(user)
    return user


SessionUserDependency = Annotated[User | None, Depends(get_session_user)]


async def require_session_user(request: Request, user: SessionUserDependency) -> User:
    """Send anonymous browsers to the sign-in page."""

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_303_SEE_OTHER,
            headers={"Location": str(request.url_for("auth:login"))},
        )
    return user


AuthenticatedSessionUserDependency = Annotated[User, Depends(require_session_user)]


__all__ = [
    "AuthenticatedSessionUserDependency",
    "CurrentUserDependency",
    "DatabaseSessionDependency",
    "SessionUserDependency",
    "SettingsDependency",
    "TaskServiceDependency",
    "get_app_settings",
    "get_current_user",
    "get_database",
    "get_db_session",
    "get_session_user",
    "get_task_service",
    "require_session_user",
]
