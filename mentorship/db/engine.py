"""PostgreSQL engine for the assignment and doubt tables.

Built only when DATABASE_URL is set; otherwise ``engine`` and
``async_session_factory`` are None and requests run against the
in-memory repositories (see api.dependencies.get_store).
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from mentorship.core.config import SETTINGS

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


engine: AsyncEngine | None = None
async_session_factory: async_sessionmaker[AsyncSession] | None = None

if SETTINGS.database_url:
    engine = create_async_engine(
        SETTINGS.database_url,
        echo=SETTINGS.is_dev,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
    )
    # Services return domain objects after commit; rows must stay readable.
    async_session_factory = async_sessionmaker(engine, expire_on_commit=False)


@asynccontextmanager
async def lifespan_db() -> AsyncIterator[None]:
    if engine is None:
        logger.info("DATABASE_URL not set; assignments and doubts are kept in memory")
        yield
        return

    logger.info("Using PostgreSQL at %s", engine.url.render_as_string(hide_password=True))
    try:
        yield
    finally:
        await engine.dispose()
        logger.info("Database engine disposed")
