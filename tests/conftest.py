"""Root conftest - shared test configuration and fixtures.

Invariants:
    - Every test that touches the store gets a fresh in-memory SQLite database
    - The temporal clock can be pinned so periods are deterministic
"""

import os
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

# Ensure tests never reach a real database or inherit a deployment profile
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SERVICE_TYPE", "default")
os.environ.setdefault("LOG_FORMAT", "text")

from school_api.infrastructure.database import DatabaseSessionManager  # noqa: E402
from school_api.infrastructure.school_command_repository import (  # noqa: E402
    SqlSchoolCommandRepository,
)
from school_api.infrastructure.school_query_repository import (  # noqa: E402
    SqlSchoolQueryRepository,
)

T0 = datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)


class PinnedClock:
    """Callable stand-in for utc_now() that only moves when told to."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
async def db_manager():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", poolclass=StaticPool,
    )
    manager = DatabaseSessionManager.from_engine(engine)
    await manager.create_schema()
    yield manager
    await manager.dispose()


@pytest.fixture
def clock(monkeypatch):
    pinned = PinnedClock(T0)
    monkeypatch.setattr("school_api.infrastructure.temporal.utc_now", pinned)
    monkeypatch.setattr(
        "school_api.infrastructure.school_command_repository.utc_now", pinned,
    )
    return pinned


@pytest.fixture
def command_repo(db_manager):
    return SqlSchoolCommandRepository(db_manager)


@pytest.fixture
def query_repo(db_manager):
    return SqlSchoolQueryRepository(db_manager)
