"""Database Sessions — the SessionScope every round service runs its unit of work in.

Invariants:
    - A SQLAlchemy failure is rolled back and leaves the scope as DatabaseError
      (core/errors.py), so a failed phase pass leaves no partial status changes
    - Anything else (domain errors, cancellation) propagates unchanged
    - Callers commit explicitly; close() discards anything left uncommitted

Design Decisions:
    - expire_on_commit=False: rows loaded before commit stay readable afterwards
      (the engine reads round ids after the phase pass commits)
    - from_engine() lets tests bind an in-memory SQLite engine without pooling args
"""

import logging
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import AsyncGenerator, Callable

from sqlalchemy import text
from sqlalchemy.exc import (
    DBAPIError, IntegrityError, OperationalError, SQLAlchemyError,
)
from sqlalchemy.ext.asyncio import (
    AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine,
)

from aux_rounds.core.errors import DatabaseError

logger = logging.getLogger(__name__)

# Zero-arg factory for a session context manager (e.g. db_manager.session)
SessionScope = Callable[[], AbstractAsyncContextManager[AsyncSession]]

# Most specific first: IntegrityError and OperationalError are DBAPIErrors
_ERROR_MAP: tuple[tuple[type[SQLAlchemyError], str, str], ...] = (
    (IntegrityError, "Integrity constraint violated", "commit"),
    (OperationalError, "Connection or operational error", "execute"),
    (DBAPIError, "Database driver error", "query"),
    (SQLAlchemyError, "Database operation failed", "unknown"),
)


def _to_database_error(exc: SQLAlchemyError) -> DatabaseError:
    for exc_type, message, operation in _ERROR_MAP:
        if isinstance(exc, exc_type):
            return DatabaseError(message, operation)
    return DatabaseError("Database operation failed", "unknown")


class DatabaseSessionManager:
    """Owns the async engine and hands out rollback-on-error sessions."""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self._session_factory = async_sessionmaker(
            engine, class_=AsyncSession, expire_on_commit=False,
        )

    @classmethod
    def from_url(
        cls, database_url: str, pool_size: int = 20, max_overflow: int = 10,
    ) -> "DatabaseSessionManager":
        return cls(create_async_engine(
            database_url,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_pre_ping=True,
            pool_recycle=3600,
        ))

    @classmethod
    def from_engine(cls, engine: AsyncEngine) -> "DatabaseSessionManager":
        return cls(engine)

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        session = self._session_factory()
        try:
            yield session
        except SQLAlchemyError as e:
            await session.rollback()
            error = _to_database_error(e)
            logger.error(
                f"Database {error.operation} failed: {e}",
                extra={"error_code": error.code},
            )
            raise error from e
        finally:
            await session.close()

    async def health_check(self) -> bool:
        """SELECT 1 through a fresh session; False on any failure."""
        try:
            async with self.session() as db:
                await db.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return False

    async def dispose(self) -> None:
        await self.engine.dispose()


# Set by the app lifespan
db_manager: DatabaseSessionManager | None = None


def init_db(database_url: str, **kwargs) -> DatabaseSessionManager:
    global db_manager
    db_manager = DatabaseSessionManager.from_url(database_url, **kwargs)
    return db_manager


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one read session per request."""
    if not db_manager:
        raise RuntimeError("Database not initialized")
    async with db_manager.session() as session:
        yield session
