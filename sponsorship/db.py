"""SQLAlchemy 2.x async database setup.

This module defines the async engine and session factory but does not
hard-code any connection credentials.
"""

from __future__ import annotations

from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from .config import DatabaseSettings, settings


def create_engine(db: DatabaseSettings | None = None) -> AsyncEngine:
    db = db or settings.db
    kwargs = {"echo": db.echo, "future": True}
    if not db.url.startswith("sqlite"):
        kwargs.update(pool_size=db.pool_size, max_overflow=db.max_overflow, pool_pre_ping=True)
    return create_async_engine(db.url, **kwargs)


def create_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=bind, expire_on_commit=False, class_=AsyncSession)


engine: AsyncEngine = create_engine()

AsyncSessionMaker = create_session_factory(engine)


async def get_session() -> AsyncIterator[AsyncSession]:
    """FastAPI-friendly async session dependency.

    Usage:
        async def endpoint(session: AsyncSession = Depends(get_session)):
            ...
    """

    async with AsyncSessionMaker() as session:
        yield session
