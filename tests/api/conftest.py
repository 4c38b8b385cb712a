"""Fixtures for API tests against the ASGI app with overridden dependencies."""

from collections.abc import AsyncGenerator, Generator

import pytest
from httpx import ASGITransport, AsyncClient

from stockledger.api.main import app


@pytest.fixture
def overrides() -> Generator[dict, None, None]:
    """Dependency overrides installed for one test, removed afterwards."""
    yield app.dependency_overrides
    app.dependency_overrides.clear()


@pytest.fixture
async def client(overrides) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def actor_headers() -> dict[str, str]:
    return {"X-User-Id": "u-1", "X-User-Name": "Depo Sorumlusu"}
