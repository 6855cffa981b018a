"""
Database engine and session factories for the Laundry Order Platform.

Two ways to get a session:
    - get_db(): one session per HTTP request (FastAPI dependency)
    - get_session_factory(): the sessionmaker itself, for long-lived
      connections (WebSockets) that open a short session per lookup

The order store bounds every load/commit with settings.store_timeout_seconds;
the same value is used as the SQLite busy timeout so a locked database file
fails inside that bound instead of hanging the request.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from config import settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""
    pass


def async_database_url(url: str) -> str:
    """sqlite:///path → sqlite+aiosqlite:///path; other URLs must name an async driver."""
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    return url


def engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"connect_args": {"timeout": settings.store_timeout_seconds}}
    # Server databases drop idle connections; check them out of the pool alive.
    return {
        "pool_pre_ping": True,
        "pool_timeout": settings.store_timeout_seconds,
    }


_url = async_database_url(settings.database_url)
engine = create_async_engine(_url, **engine_options(_url))

# Transitions read the order back after commit, so committed rows stay loaded.
async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db() -> None:
    """Create all tables. Called once on server startup."""
    import db_models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info(f"Database tables ready ({engine.url.get_backend_name()})")


async def get_db() -> AsyncSession:
    """FastAPI dependency: one session (one unit of work) per request."""
    async with async_session() as session:
        yield session


def get_session_factory() -> async_sessionmaker:
    """FastAPI dependency for handlers that outlive a single unit of work."""
    return async_session
