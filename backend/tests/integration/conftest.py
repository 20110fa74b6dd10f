"""Integration test configuration and fixtures."""

import pytest
import pytest_asyncio

import httpx
from fastapi.testclient import TestClient

from restodb.main import create_app


@pytest.fixture(scope="function")
def test_app(store, fake_session):
    """Create a test FastAPI app with all middleware."""
    return create_app(store=store, session_factory=fake_session())


@pytest.fixture(scope="function")
def client(test_app):
    """Synchronous test client for simple tests."""
    return TestClient(test_app, base_url="http://testserver")


@pytest_asyncio.fixture(scope="function")
async def async_client(test_app):
    """Async test client over the ASGI transport."""
    transport = httpx.ASGITransport(app=test_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac
