"""API test fixtures — FastAPI app over the in-memory test database.

Invariants:
    - get_db dependency overridden to use the test session factory
    - db_manager swapped for the test manager (readiness probe uses it directly)
    - Lifespan does not run under ASGITransport: no scheduler is started
"""

import pytest
from httpx import ASGITransport, AsyncClient

import aux_rounds.infrastructure.database as db_module
from aux_rounds.infrastructure.database import get_db
from aux_rounds.main import app


@pytest.fixture
async def client(db_manager, test_session_factory):
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    original_manager = db_module.db_manager
    db_module.db_manager = db_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager
    for attr in ("round_scheduler", "clock"):
        if hasattr(app.state, attr):
            delattr(app.state, attr)
