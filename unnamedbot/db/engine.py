"""Async SQLAlchemy engine and session factory.

The pool is the only gate on database access: every repository call runs
inside ``async with async_session()``, which checks a connection out of the
pool and returns it on exit.  ``DB_POOL_SIZE=1`` with ``DB_MAX_OVERFLOW=0``
serialises all queries over a single connection.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from unnamedbot.config import settings

engine = create_async_engine(
    settings.DATABASE_URL,
    echo=False,
    pool_size=settings.DB_POOL_SIZE,
    max_overflow=settings.DB_MAX_OVERFLOW,
    pool_pre_ping=True,
)

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)
