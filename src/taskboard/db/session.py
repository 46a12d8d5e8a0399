"""The store handle: one engine plus a session factory, opened and closed explicitly."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from ..core.config import Settings

# Importing the models registers their tables on ``SQLModel.metadata``.
from .. import models  # noqa: F401


def _engine_options(url: str, echo: bool) -> dict[str, Any]:
    options: dict[str, Any] = {"echo": echo}
    if url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
        if ":memory:" in url or "mode=memory" in url:
            options["poolclass"] = StaticPool
    else:
        options["pool_pre_ping"] = True
    return options


class Database:
    """Own the async engine for the lifetime of the application.

    Construct one per process (``Database.from_settings``), hand it to
    ``create_app`` and call ``dispose`` when done. Request handlers never touch
    the engine; they borrow a session through ``session()``, which always
    closes it again, rolling back anything left uncommitted.
    """

    def __init__(self, url: str, *, echo: bool = False, **engine_options: Any) -> None:
        options = _engine_options(url, echo)
        options.update(engine_options)
        self.url = url
        self._engine: AsyncEngine = create_async_engine(url, **options)
        self._session_factory = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(settings.database_url, echo=settings.db_echo)

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Yield a session scoped to the ``async with`` block."""
        async with self._session_factory() as session:
            try:
                yield session
            except BaseException:
                await session.rollback()
                raise

    async def create_all(self) -> None:
        """Create any missing tables (local development and tests)."""
        async with self._engine.begin() as connection:
            await connection.run_sync(SQLModel.metadata.create_all)

    async def drop_all(self) -> None:
        async with self._engine.begin() as connection:
            await connection.run_sync(SQLModel.metadata.drop_all)

    async def dispose(self) -> None:
        await self._engine.dispose()


__all__ = ["Database"]
