"""Async engine, session dependency and the single-transaction runner.

Every core operation (validate-and-apply bid, close-and-settle, payment
confirmation, top-up approval) runs inside run_in_transaction(): one
AsyncSession transaction, row locks taken with SELECT ... FOR UPDATE,
commit on success, full rollback on rejection or error.
"""

import logging
from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from config.settings import settings
from src.am_common.errors import StoreIntegrityError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Base(DeclarativeBase):
    """Shared declarative base for all ORM models across modules."""

    pass


engine: AsyncEngine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_size=20,
    max_overflow=10,
    # Server-side timeouts abort the enclosing transaction instead of leaving
    # a bid or close half-applied.
    connect_args={
        "server_settings": {
            "lock_timeout": str(settings.LOCK_TIMEOUT_MS),
            "statement_timeout": str(settings.STATEMENT_TIMEOUT_MS),
        }
    },
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: yields an AsyncSession, auto-closes after request."""
    async with async_session_factory() as session:
        yield session


async def run_in_transaction(
    db: AsyncSession,
    operation: str,
    work: Callable[[], Awaitable[T]],
    commit_if: Callable[[T], bool] = lambda _: True,
    **context: object,
) -> T:
    """Run work() as one all-or-nothing unit.

    commit_if(result) decides between commit and rollback for results that
    are returned rather than raised (typed rejections). Store errors are
    logged with context and surfaced as StoreIntegrityError.
    """
    try:
        result = await work()
        if commit_if(result):
            await db.commit()
        else:
            await db.rollback()
        return result
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Store failure: operation=%s context=%s", operation, context)
        raise StoreIntegrityError(operation) from exc
    except Exception:
        await db.rollback()
        raise
