"""
Health and readiness endpoint tests.
"""

import pytest
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient
from structlog.testing import capture_logs

from portfolio.core.session import MemorySessionStore
from portfolio.main import create_app

from conftest import FakeDatabase, FakeIdentityProvider, FakeProjectRepository, make_settings


def _app(database: FakeDatabase):
    return create_app(
        make_settings(),
        database=database,
        projects=FakeProjectRepository(),
        session_store=MemorySessionStore(),
        identity_provider=FakeIdentityProvider(),
    )


@pytest.fixture
async def client():
    transport = ASGITransport(app=_app(FakeDatabase()))
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient):
    """Health endpoint should return status ok."""
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_ready_check(client: AsyncClient):
    """Ready endpoint should return status ready when the store answers."""
    response = await client.get("/ready")
    assert response.status_code == 200
    assert response.json() == {"status": "ready"}


@pytest.mark.asyncio
async def test_ready_check_store_down():
    transport = ASGITransport(app=_app(FakeDatabase(healthy=False)))
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        response = await ac.get("/ready")
    assert response.status_code == 503
    assert response.json() == {"status": "unavailable"}


@pytest.mark.asyncio
async def test_health_needs_no_session(client: AsyncClient):
    response = await client.get("/health")
    assert "set-cookie" not in response.headers


def test_startup_logs_server_url():
    database = FakeDatabase()
    app = _app(database)
    with capture_logs() as logs:
        with TestClient(app):
            pass
    (started,) = [e for e in logs if e["event"] == "Server running"]
    assert started["port"] == 3000
    assert started["url"] == "http://localhost:3000"
    assert database.disposed
