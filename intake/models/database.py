"""
Async SQLAlchemy engine, session factory and declarative base.
The session factory is the storage handle injected into every store.
"""

from typing import AsyncIterator, Optional

import structlog
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from intake.config import settings

logger = structlog.get_logger(__name__)


class Base(DeclarativeBase):
    pass


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    """SQLite ships with FK enforcement off; turn it on per connection."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


_ASYNC_DRIVERS = {
    "postgres": "postgresql+asyncpg",
    "postgresql": "postgresql+asyncpg",
    "sqlite": "sqlite+aiosqlite",
}


def async_database_url(url: str) -> str:
    """
    Point a plain database URL at its async driver.
    Hosting platforms hand out postgres:// or postgresql:// URLs;
    URLs that already name a driver are returned unchanged.
    """
    scheme, sep, rest = url.partition("://")
    if not sep:
        return url
    return f"{_ASYNC_DRIVERS.get(scheme, scheme)}://{rest}"


def create_engine_and_factory(
    url: str, echo: bool = False
) -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    """Build an engine plus a session factory bound to it."""
    new_engine = create_async_engine(async_database_url(url), echo=echo)
    if new_engine.dialect.name == "sqlite":
        event.listen(new_engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    factory = async_sessionmaker(new_engine, expire_on_commit=False)
    return new_engine, factory


# ── Application-wide instances ───────────────────────────────
engine, async_session_factory = create_engine_and_factory(
    settings.DATABASE_URL, echo=settings.DB_ECHO
)


async def get_session() -> AsyncIterator[AsyncSession]:
    """Yield a session from the application factory."""
    async with async_session_factory() as session:
        yield session


async def init_db(target: Optional[AsyncEngine] = None) -> None:
    """Create all tables that do not exist yet."""
    # Register the mapped tables on Base.metadata
    import intake.models.tables  # noqa: F401

    target = target or engine
    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("database_initialised", dialect=target.dialect.name)


async def close_db() -> None:
    """Dispose the application engine's connection pool."""
    await engine.dispose()
