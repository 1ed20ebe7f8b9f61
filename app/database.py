"""Async SQLAlchemy plumbing for the catalog's local state."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from sqlalchemy import MetaData
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base shared by the playlist, snapshot and favorite tables."""

    metadata = MetaData()


def sqlite_database_path(database_url: str) -> Path | None:
    """Return the file backing a SQLite URL, or ``None`` for other backends."""

    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return None
    if not url.database or url.database == ":memory:":
        return None
    return Path(url.database)


class Database:
    """Owns the async engine and hands out sessions to the catalog service."""

    def __init__(self, database_url: str):
        self._url = database_url
        self._engine: AsyncEngine = create_async_engine(database_url, future=True)
        self.session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            self._engine, expire_on_commit=False
        )

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    async def create_all(self) -> None:
        """Create the catalog tables, and the SQLite directory, when missing."""

        path = sqlite_database_path(self._url)
        if path is not None and not path.parent.exists():
            logger.info("Creating database directory %s", path.parent)
            path.parent.mkdir(parents=True, exist_ok=True)

        # Importing registers the ORM tables on ``Base.metadata``.
        from . import db_models  # noqa: F401

        async with self._engine.begin() as connection:
            await connection.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self._engine.dispose()

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Yield a session that is closed when the block exits."""

        async with self.session_factory() as session:
            yield session
