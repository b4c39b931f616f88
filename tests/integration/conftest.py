"""Integration-test fixtures.

Needs PostgreSQL migrated to head (alembic upgrade head). All integration
tests share a single event loop so the module-level SQLAlchemy async engine
pool (created at import time) stays valid across the session.
"""

import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.main import app

PASSWORD = "TestPass123!"


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client: keeps the engine pool alive."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def _signup(client: AsyncClient, prefix: str, deposit_cents: int = 0) -> dict[str, str]:
    """Register a fresh user, log in, optionally fund; returns auth headers."""
    username = f"{prefix}_{uuid.uuid4().hex[:8]}"
    await client.post("/api/v1/auth/register", json={"username": username, "password": PASSWORD})
    login = await client.post(
        "/api/v1/auth/login", json={"username": username, "password": PASSWORD}
    )
    headers = {"Authorization": f"Bearer {login.json()['data']['access_token']}"}
    if deposit_cents:
        await client.post(
            "/api/v1/account/deposit", json={"amount_cents": deposit_cents}, headers=headers
        )
    return headers


@pytest.fixture
def signup():
    return _signup
