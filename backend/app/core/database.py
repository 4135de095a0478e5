"""
Database engine and session management.

Async SQLAlchemy engine created lazily from settings, one session per request.
"""

from collections.abc import AsyncGenerator

from loguru import logger
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.core.config import get_settings
from app.core.exceptions import ConflictError, StorageError


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    """Get (or create) the application engine."""
    global _engine, _session_factory

    if _engine is None:
        settings = get_settings()
        options: dict = {"echo": settings.database_echo}
        if not settings.database_url.startswith("sqlite"):
            options.update(
                pool_size=settings.database_pool_size,
                max_overflow=settings.database_max_overflow,
                pool_pre_ping=True,
            )
        _engine = create_async_engine(settings.database_url, **options)
        _session_factory = async_sessionmaker(_engine, expire_on_commit=False)

    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get the session factory bound to the application engine."""
    get_engine()
    assert _session_factory is not None
    return _session_factory


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency yielding a database session.

    Services commit their own units of work; anything left pending when the
    request fails is rolled back here.
    """
    async with get_session_factory()() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def commit_or_raise(db: AsyncSession, conflict_message: str | None = None) -> None:
    """
    Commit the session's unit of work.

    Unique-constraint violations become ``ConflictError`` when a conflict
    message is given; every other database failure becomes ``StorageError``.
    The session is rolled back either way.
    """
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        if conflict_message is None:
            logger.error(f"Integrity error on commit: {e.orig}")
            raise StorageError(str(e.orig)) from e
        logger.info(f"Uniqueness conflict: {conflict_message}")
        raise ConflictError(conflict_message) from e
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Database error on commit: {e}")
        raise StorageError(str(e)) from e


async def init_db() -> None:
    """Create tables for all registered models."""
    # Register models on Base.metadata
    from app.models import forum, user  # noqa: F401

    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.debug(f"Database schema ready ({engine.url.get_backend_name()})")


async def close_db() -> None:
    """Dispose of the engine and forget it."""
    global _engine, _session_factory

    if _engine is not None:
        await _engine.dispose()
        logger.debug("Database engine disposed")

    _engine = None
    _session_factory = None
