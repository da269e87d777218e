"""Async SQLAlchemy engine and session factory.

When DATABASE_URL is configured, `create_database()` returns an async
engine for PostgreSQL via asyncpg plus a session factory.  When it is
None, the service container falls back to the in-memory metadata repo and
no database is needed.
"""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all table models."""


def create_database(
    database_url: str, *, echo: bool = False
) -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    engine = create_async_engine(
        database_url,
        echo=echo,  # log SQL in dev only
        pool_size=5,
        max_overflow=10,
    )
    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    logger.info("Database engine created: %s", engine.url)
    return engine, session_factory


async def dispose_database(engine: AsyncEngine) -> None:
    await engine.dispose()
    logger.info("Database engine disposed")
