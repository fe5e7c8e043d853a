"""API test fixtures - School API apps per service type over in-memory SQLite.

Invariants:
    - Apps are built with create_app(); the lifespan does not run under
      ASGITransport, so managers and the service are wired here the same way
      the lifespan wires them
    - All profiles share the test database, as separate instances would share
      a primary/replica pair
"""

import pytest
from httpx import ASGITransport, AsyncClient

from school_api.config import Settings
from school_api.infrastructure.database import DatabaseManagers
from school_api.main import build_school_service, create_app


@pytest.fixture
def app_factory(db_manager):
    def build(service_type: str = "default"):
        app = create_app(Settings(
            service_type=service_type,
            database_url="sqlite+aiosqlite:///:memory:",
        ))
        policy = app.state.policy
        managers = DatabaseManagers(
            command=db_manager if policy.wires_command_repository else None,
            query=db_manager,
        )
        app.state.databases = managers
        app.state.school_service = build_school_service(managers)
        return app
    return build


def make_client(app, **transport_kwargs) -> AsyncClient:
    return AsyncClient(
        transport=ASGITransport(app=app, **transport_kwargs), base_url="http://test",
    )


@pytest.fixture
def client_for():
    """Factory for clients over a custom app (e.g. a mocked service)."""
    return make_client


@pytest.fixture
async def client(app_factory):
    async with make_client(app_factory("default")) as c:
        yield c


@pytest.fixture
async def reader_client(app_factory):
    async with make_client(app_factory("reader")) as c:
        yield c


@pytest.fixture
async def writer_client(app_factory):
    async with make_client(app_factory("writer")) as c:
        yield c
