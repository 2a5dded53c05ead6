"""
Database session and engine configuration.

This file sets up the async database connection using SQLAlchemy + asyncpg.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from hiring_core.core.config import settings
from hiring_core.errors import AppError, Conflict, InternalError

logger = logging.getLogger(__name__)


# Create the async database engine
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,  # When DEBUG=True, prints SQL queries to console
    future=True,
)

# Create a session factory
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,  # Keeps data accessible after commit
)

# Alias for dependencies
AsyncSessionLocal = async_session_maker


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Get a database session.
    
    Services own their commits, so the dependency only guarantees that an
    abandoned transaction is rolled back and the session is closed.
    """
    async with async_session_maker() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


@asynccontextmanager
async def get_async_session_context() -> AsyncGenerator[AsyncSession, None]:
    """Context manager helper for async DB sessions (used in workers/scripts)."""
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


@asynccontextmanager
async def atomic(db: AsyncSession, operation: str) -> AsyncGenerator[AsyncSession, None]:
    """
    Run a block of reads and writes as one transaction.

    Commits when the block exits cleanly. Any failure rolls back so no partial
    effect is visible; domain errors propagate unchanged, integrity violations
    from a concurrent writer become Conflict and anything else from the
    database becomes InternalError (safe to retry).
    """
    try:
        yield db
        await db.commit()
    except AppError:
        await db.rollback()
        raise
    except IntegrityError as exc:
        await db.rollback()
        logger.warning("Transaction for %s hit an integrity violation", operation, exc_info=True)
        raise Conflict(
            "CONCURRENT_MODIFICATION",
            "The record was changed by another request",
            {"operation": operation},
        ) from exc
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Transaction for %s failed and was rolled back", operation)
        raise InternalError(
            "TRANSACTION_FAILED",
            "The change could not be saved; it is safe to retry",
            {"operation": operation},
        ) from exc
    except Exception:
        await db.rollback()
        raise


async def rollback_quietly(db: AsyncSession) -> None:
    """Roll back after a best-effort write failed, without raising."""
    try:
        await db.rollback()
    except Exception:
        logger.warning("Rollback after a best-effort write failed", exc_info=True)
