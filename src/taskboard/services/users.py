"""Service layer orchestrating user-related repository operations."""

from __future__ import annotations

import logging

from sqlmodel.ext.asyncio.session import AsyncSession

from ..core.security import get_password_hash
from ..models import User
from ..repositories import UserRepository

logger = logging.getLogger(__name__)


class UserService:
    """High-level business operations for ``User`` entities."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._repository = UserRepository(session)

    async def create_user(self, *, name: str, email: str, password: str) -> User:
        """Hash ``password`` and persist a new account."""
        user = User(
            name=name.strip(),
            email=email.strip().lower(),
            hashed_password=get_password_hash(password),
        )
        await self._repository.add(user)
        await self._session.commit()
        await self._session.refresh(user)
        logger.info("User registered", extra={"user_id": user.id})
        return user

    async def get_user(self, user_id: int) -> User | None:
        return await self._repository.get(user_id)

    async def get_user_by_email(self, email: str) -> User | None:
        return await self._repository.get_by_email(email.strip().lower())

    async def list_directory(self) -> list[User]:
        return await self._repository.list_directory()
