"""
Database connection and session management.

The engine (and its connection pool) is built once per process by
`create_app` and shared through `app.state.database`. Connections are opened
lazily, so an unreachable database does not abort startup.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel


class Database:
    """Async engine plus a session factory bound to it."""

    def __init__(self, url: str, *, echo: bool = False, pool_size: int = 10):
        engine_kwargs = {"echo": echo, "future": True, "pool_pre_ping": True}
        # SQLite pools (tests, local dev) do not accept sizing arguments.
        if make_url(url).get_backend_name() != "sqlite":
            engine_kwargs["pool_size"] = pool_size
        self.url = url
        self.engine = create_async_engine(url, **engine_kwargs)
        self.session_factory = sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def create_all(self) -> None:
        """Create all tables (development only; use migrations in production)."""
        # Registers the table models on SQLModel.metadata.
        from portfolio import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)

    async def ping(self) -> None:
        """Round-trip a trivial query. Raises on connectivity problems."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def dispose(self) -> None:
        await self.engine.dispose()

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Session scoped to one unit of work; commits on success."""
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
