"""
Test fixtures - a freshly seeded in-memory store per test + HTTP clients
"""
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from coldchain_wms.config import Settings
from coldchain_wms.main import create_app

TEST_SEED = 1234


@pytest_asyncio.fixture()
async def settings():
    return Settings(
        SIMULATOR_ENABLED=False,
        RANDOM_SEED=TEST_SEED,
        SECRET_KEY="test-secret-key",
        RESPONSE_DELAY_MS=0,
    )


@pytest_asyncio.fixture()
async def app(settings):
    """App with its store initialized; ASGITransport does not run the lifespan"""
    application = create_app(settings)
    await application.state.store.init()
    yield application
    await application.state.store.shutdown()


@pytest_asyncio.fixture()
async def store(app):
    return app.state.store


@pytest_asyncio.fixture()
async def client(app):
    """Unauthenticated httpx AsyncClient bound to the FastAPI app"""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture()
async def auth_client(client):
    """Client carrying a bearer token for the seeded admin"""
    response = await client.post("/api/auth/login", json={"email": "admin@wms.com", "password": "demo"})
    assert response.status_code == 200
    client.headers["Authorization"] = f"Bearer {response.json()['token']}"
    yield client
