"""Database Session Manager - async unit-of-work acquisition with rollback and health checks.

Invariants:
    - Every session auto-rolls-back on exception (no partial commits leak)
    - Every session is closed on every exit path
    - Sessions use TemporalSession, so flushes keep school_history in step
    - StaleDataError mapped to ConcurrencyError; other SQLAlchemy exceptions
      mapped to DatabaseError (core/errors.py)
    - One manager per distinct connection string; command and query sides
      share a manager when their URLs are equal

Design Decisions:
    - Managers built in the FastAPI lifespan and kept on app.state: no global
      import side effects, tests can swap them
    - expire_on_commit=False: entities stay readable after commit in async context
    - SQLite URLs skip pool sizing (aiosqlite uses a static pool for :memory:)
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import (
    IntegrityError, OperationalError, DBAPIError, SQLAlchemyError,
)
from sqlalchemy.ext.asyncio import (
    AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine,
)
from sqlalchemy.orm.exc import StaleDataError

from school_api.core.errors import ConcurrencyError, DatabaseError
from school_api.core.service_type import ServiceTypePolicy
from school_api.db.base import Base
from school_api.infrastructure.temporal import TemporalSession

logger = logging.getLogger(__name__)


def _engine_options(database_url: str, pool_size: int, max_overflow: int) -> dict:
    if database_url.startswith("sqlite"):
        return {}
    return {
        "pool_size": pool_size,
        "max_overflow": max_overflow,
        "pool_pre_ping": True,
        "pool_recycle": 3600,
    }


class DatabaseSessionManager:
    """Manages async database sessions with pooling, rollback, and health checks."""

    def __init__(
        self,
        database_url: str,
        pool_size: int = 20,
        max_overflow: int = 10,
        engine: AsyncEngine | None = None,
    ):
        self.database_url = database_url
        self.engine = engine or create_async_engine(
            database_url, **_engine_options(database_url, pool_size, max_overflow),
        )
        self._session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            sync_session_class=TemporalSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_engine(cls, engine: AsyncEngine) -> "DatabaseSessionManager":
        return cls(engine.url.render_as_string(hide_password=False), engine=engine)

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide session with auto-rollback on exception."""
        session = self._session_factory()
        try:
            yield session
        except StaleDataError as e:
            await session.rollback()
            logger.warning(f"DB concurrent modification: {e}")
            raise ConcurrencyError("Row was modified or deleted by another request")
        except IntegrityError as e:
            await session.rollback()
            logger.error(f"DB integrity error: {e}")
            raise DatabaseError("Integrity constraint violated", "commit")
        except OperationalError as e:
            await session.rollback()
            logger.error(f"DB operational error: {e}")
            raise DatabaseError("Connection or operational error", "execute")
        except DBAPIError as e:
            await session.rollback()
            logger.error(f"DB driver error: {e}")
            raise DatabaseError("Database driver error", "query")
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"SQLAlchemy error: {e}")
            raise DatabaseError("Database operation failed", "unknown")
        finally:
            await session.close()

    async def create_schema(self) -> None:
        """Create schools/school_history if missing (AUTO_CREATE_SCHEMA)."""
        import school_api.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def health_check(self) -> bool:
        """Check database connectivity (for readiness probes)."""
        try:
            async with self.session() as db:
                await db.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"DB health check failed: {e}")
            return False

    async def dispose(self) -> None:
        await self.engine.dispose()


@dataclass
class DatabaseManagers:
    """Session managers wired for one deployment profile."""
    command: DatabaseSessionManager | None
    query: DatabaseSessionManager

    def distinct(self) -> list[DatabaseSessionManager]:
        managers = [self.query]
        if self.command is not None and self.command is not self.query:
            managers.append(self.command)
        return managers

    async def dispose(self) -> None:
        for manager in self.distinct():
            await manager.dispose()


def init_databases(
    policy: ServiceTypePolicy,
    command_url: str,
    query_url: str,
    pool_size: int = 20,
    max_overflow: int = 10,
) -> DatabaseManagers:
    """Build the managers a profile needs. Equal URLs share one engine."""
    command = None
    if policy.wires_command_repository:
        command = DatabaseSessionManager(command_url, pool_size, max_overflow)
    if command is not None and query_url == command_url:
        query = command
    else:
        query = DatabaseSessionManager(query_url, pool_size, max_overflow)
    logger.info(
        f"Database wiring for {policy.service_type.value}: "
        f"command={'yes' if command else 'no'}, "
        f"shared_engine={command is query}",
        extra={"service_type": policy.service_type.value},
    )
    return DatabaseManagers(command=command, query=query)
