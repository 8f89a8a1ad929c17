"""
Async SQLAlchemy engine + session factory for the entity store.

The store is built by the process entry point (see main.lifespan) and handed
to request handlers through FastAPI dependencies; nothing here is created at
import time.
"""
import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from social_index.config import Settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


def now_ms() -> int:
    """Current wall-clock time as integer epoch milliseconds."""
    return int(time.time() * 1000)


class Store:
    """Owns the engine and session factory for one process."""

    def __init__(self, engine: AsyncEngine) -> None:
        self.engine = engine
        self._sessions = async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Store":
        url = settings.store_url
        kwargs = {"pool_pre_ping": True, "echo": False}
        if not url.startswith("sqlite"):
            kwargs["pool_size"] = settings.db_pool_size
            kwargs["max_overflow"] = settings.db_max_overflow
        return cls(create_async_engine(url, **kwargs))

    async def init(self) -> None:
        """Create all tables if they don't exist (idempotent)."""
        from social_index import models  # noqa: F401  register tables

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Entity store tables initialised")

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info("Entity store connections closed")

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Session scope: commit on success, roll back on error."""
        async with self._sessions() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise


def get_store(request: Request) -> Store:
    return request.app.state.store


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """FastAPI dependency that yields an async session from the app's store."""
    async with get_store(request).session() as session:
        yield session
