"""Connection handling for the journeys database."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from visapath.core.config import DatabaseConfig


def _engine_options(database_url: str, echo: bool, pool_size: int) -> dict[str, Any]:
    options: dict[str, Any] = {"echo": echo}
    # aiosqlite runs on a single connection; pool sizing does not apply.
    if make_url(database_url).get_backend_name() != "sqlite":
        options.update(pool_size=pool_size, pool_pre_ping=True)
    return options


class DatabaseManager:
    """Engine plus session factory for one database URL.

    Reads use :meth:`session`; writes use :meth:`transaction`, which commits
    when the block exits cleanly and rolls back otherwise::

        db = DatabaseManager.from_config(settings.db)
        async with db.transaction() as session:
            session.add(row)
        await db.close()
    """

    def __init__(self, database_url: str, echo: bool = False, pool_size: int = 5) -> None:
        self._engine: AsyncEngine = create_async_engine(
            database_url, **_engine_options(database_url, echo, pool_size)
        )
        self._session_factory = async_sessionmaker(self._engine, expire_on_commit=False)

    @classmethod
    def from_config(cls, config: DatabaseConfig) -> DatabaseManager:
        if not config.database_url:
            raise ValueError("VISAPATH_DB_DATABASE_URL is not set")
        return cls(config.database_url, echo=config.echo, pool_size=config.pool_size)

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    def session(self) -> AsyncSession:
        return self._session_factory()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def create_all(self) -> None:
        """Create the journeys schema directly. Alembic owns it in deployments."""
        from visapath.db.base import Base
        import visapath.db.models  # noqa: F401

        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        await self._engine.dispose()
