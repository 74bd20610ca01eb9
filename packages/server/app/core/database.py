"""
Database connection and session management.

The engine lives on a ``Database`` object owned by the application
(``app.state.db``) and sessions are handed to route handlers and services
explicitly, so tests can point an app at their own database.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from app.core.config import Settings


def _engine_kwargs(database_url: str, echo: bool) -> dict:
    kwargs: dict = {"echo": echo, "future": True}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in database_url or database_url.rstrip("/").endswith("sqlite+aiosqlite:"):
            kwargs["poolclass"] = StaticPool
    return kwargs


class Database:
    """Owns the async engine and session factory for one application."""

    def __init__(self, database_url: str, *, echo: bool = False):
        self.engine: AsyncEngine = create_async_engine(
            database_url, **_engine_kwargs(database_url, echo)
        )
        self.session_factory = sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(settings.database_url, echo=settings.debug)

    async def create_all(self) -> None:
        """Create all tables (development and tests; use migrations in production)."""
        import app.models  # noqa: F401  (populate metadata)

        async with self.engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Context manager for use outside of the FastAPI request lifecycle."""
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions.

    One session (and one transaction) per request: anything a handler flushes
    is committed together, and any exception rolls all of it back.
    """
    db: Database = request.app.state.db
    async with db.session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
