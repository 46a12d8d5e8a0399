"""Queries over the ``users`` table."""

from __future__ import annotations

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..models import User
from .base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Concrete repository for ``User`` lookups."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, User)

    async def get_by_email(self, email: str) -> User | None:
        result = await self.session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def list_directory(self) -> list[User]:
        """Return every user ordered by display name, for assignment pickers."""
        result = await self.session.execute(select(User).order_by(User.name, User.id))
        return list(result.scalars().all())
