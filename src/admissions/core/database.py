"""
Database Configuration

Async SQLAlchemy engine, session factory and declarative base.
Sessions are handed to services explicitly through the get_db dependency.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from admissions.core.config import settings
from admissions.core.exceptions import TransientError

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


engine = create_async_engine(
    settings.database_url,
    echo=settings.database_echo,
    pool_pre_ping=True,
)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncIterator[AsyncSession]:
    """
    FastAPI dependency yielding a database session.

    The session is rolled back if the request handler raises, so a failed
    mutation never leaves a half-written transaction behind.
    """
    async with async_session_maker() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Verify the database is reachable. Schema is managed by Alembic."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    logger.info("Database connection verified")


async def close_db() -> None:
    """Dispose of the connection pool."""
    await engine.dispose()


@asynccontextmanager
async def transient_on_failure(db: AsyncSession, context: str) -> AsyncIterator[None]:
    """
    Translate unexpected persistence failures into TransientError.

    IntegrityError is re-raised untouched so callers can map constraint
    violations to the right domain error.
    """
    try:
        yield
    except IntegrityError:
        await db.rollback()
        raise
    except SQLAlchemyError as e:
        logger.exception(f"Persistence failure while {context}: {e}")
        await db.rollback()
        raise TransientError() from e
