"""API test fixtures — FastAPI test client wired to the test DB and fake identity service.

Invariants:
    - get_db overridden: each request gets its own session on the test engine
    - get_identity_client overridden with the MockTransport-backed client
    - db_manager and identity_client singletons patched for code that reads them directly
      (health checks); both restored afterwards

Design Decisions:
    - ASGITransport does not run the lifespan, so singletons are set here instead
"""

import pytest
from httpx import ASGITransport, AsyncClient

import app.infrastructure.database as db_module
import app.infrastructure.identity_client as identity_module
from app.infrastructure.database import get_db, DatabaseSessionManager
from app.infrastructure.identity_client import get_identity_client
from app.main import app


@pytest.fixture
async def client(test_engine, test_session_factory, identity):
    """FastAPI test client with DB and identity dependencies overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    async def override_get_identity_client():
        yield identity

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_identity_client] = override_get_identity_client

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    original_identity = identity_module.identity_client
    identity_module.identity_client = identity

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager
    identity_module.identity_client = original_identity
