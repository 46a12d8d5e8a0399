"""Registration, credential checks and token issuance."""

from __future__ import annotations

from fastapi import status
from sqlmodel.ext.asyncio.session import AsyncSession

from ..core.config import Settings
from ..core.security import GeneratedToken, create_access_token, verify_password
from ..errors import ApplicationError
from ..models import User
from .users import UserService

DUPLICATE_EMAIL_MESSAGE = "User already exists with this email"


class AuthService:
    """Authentication workflows shared by the JSON API and the HTML views."""

    def __init__(self, session: AsyncSession, settings: Settings) -> None:
        self._session = session
        self._settings = settings
        self._user_service = UserService(session)

    async def register_user(self, *, name: str, email: str, password: str) -> User:
        existing = await self._user_service.get_user_by_email(email)
        if existing is not None:
            raise ApplicationError(
                DUPLICATE_EMAIL_MESSAGE,
                code="email_taken",
                status_code=status.HTTP_400_BAD_REQUEST,
            )
        return await self._user_service.create_user(name=name, email=email, password=password)

    async def authenticate_user(self, email: str, password: str) -> User | None:
        """Return the matching user, or ``None`` when the credentials are wrong."""
        user = await self._user_service.get_user_by_email(email)
        if user is None:
            return None
        if not verify_password(password, user.hashed_password):
            return None
        return user

    def issue_access_token(self, user: User) -> GeneratedToken:
        if user.id is None:
            raise ApplicationError("User must be persisted before issuing tokens.")
        return create_access_token(subject=user.id, settings=self._settings)


__all__ = ["AuthService", "DUPLICATE_EMAIL_MESSAGE"]
