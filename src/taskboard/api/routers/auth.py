"""Routes handling account registration and bearer-token login."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm

from ...core.config import Settings
from ...core.security import GeneratedToken
from ...deps import CurrentUserDependency, DatabaseSessionDependency, SettingsDependency
from ...models import User
from ...schemas import AccessToken, AuthResponse, RegisterRequest, UserPublic
from ...services import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


def _build_token(token: GeneratedToken, settings: Settings) -> AccessToken:
    return AccessToken(
        access_token=token.token,
        expires_in=settings.access_token_expire_minutes * 60,
    )


def _map_user(user: User) -> UserPublic:
    return UserPublic.model_validate(user)


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user account",
)
async def register(
    payload: RegisterRequest,
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
) -> AuthResponse:
    service = AuthService(session, settings)
    user = await service.register_user(
        name=payload.name,
        email=payload.email,
        password=payload.password,
    )
    token = service.issue_access_token(user)
    return AuthResponse(user=_map_user(user), token=_build_token(token, settings))


@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Exchange email and password for a bearer token",
)
async def login(
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
) -> AuthResponse:
    service = AuthService(session, settings)
    user = await service.authenticate_user(form_data.username, form_data.password)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    token = service.issue_access_token(user)
    return AuthResponse(user=_map_user(user), token=_build_token(token, settings))


@router.get("/me", response_model=UserPublic, summary="Return the authenticated user")
async def read_me(current_user: CurrentUserDependency) -> UserPublic:
    return _map_user(current_user)
