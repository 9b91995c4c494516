"""
Travel Manager – Async SQLAlchemy engine, session factory, and declarative base.

The engine lives on a ``Database`` object owned by the application (opened in
the lifespan hook, disposed on shutdown) rather than as a module global.
"""

from __future__ import annotations

from typing import AsyncIterator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase


# ── Declarative base ──
class Base(DeclarativeBase):
    """Base class for all ORM models."""
    pass


class Database:
    """Engine + session factory with an explicit lifecycle."""

    def __init__(
        self,
        url: str,
        *,
        echo: bool = False,
        pool_size: int = 5,
        max_overflow: int = 10,
    ) -> None:
        engine_kwargs = {
            "echo": echo,
            "future": True,
        }

        # SQLite picks its own pool class; only bound the pool for server backends.
        if not url.startswith("sqlite"):
            engine_kwargs["pool_size"] = pool_size
            engine_kwargs["max_overflow"] = max_overflow
            engine_kwargs["pool_pre_ping"] = True

        # If using PostgreSQL behind PgBouncer (transaction mode), disable
        # prepared statement caching.
        if "postgresql+asyncpg" in url:
            engine_kwargs["connect_args"] = {"statement_cache_size": 0}

        self.url = url
        self.engine = create_async_engine(url, **engine_kwargs)
        self.sessionmaker = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def create_all(self) -> None:
        """Create every table registered on ``Base.metadata``."""
        # Import models so they register themselves on the metadata.
        import travel_manager.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()

    def session(self) -> AsyncSession:
        return self.sessionmaker()


# ── Dependency for FastAPI routes ──
async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """Yield an async database session from the app's pool, auto-closed on exit."""
    database: Database = request.app.state.db
    async with database.session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
