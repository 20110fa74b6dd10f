"""Pytest configuration and fixtures."""

import locale

import pytest
import pytest_asyncio
import httpx
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, MagicMock

from restodb.core.database import Recordset
from restodb.core.store import ConnectionStore
from restodb.models.connection import AuthenticationMode, ConnectionProfileRequest


@pytest.fixture(autouse=True)
def numeric_locale(monkeypatch):
    """Run under the C numeric locale unless a test sets LC_ALL itself."""
    saved = locale.setlocale(locale.LC_NUMERIC)
    monkeypatch.setenv("LC_ALL", "C")
    locale.setlocale(locale.LC_NUMERIC, "C")
    yield
    locale.setlocale(locale.LC_NUMERIC, saved)


@pytest.fixture
def store():
    """Fresh, empty store for each test."""
    return ConnectionStore()


@pytest.fixture
def fake_session():
    """
    Build a stand-in session factory.

    The returned factory is a MagicMock, so tests can assert on the profiles
    it was called with; the session it hands out is ``factory.session``.
    """

    def _factory(
        recordset=None,
        execute_error=None,
        open_error=None,
        databases=None,
        tables=None,
        catalog_error=None,
    ):
        session = MagicMock()
        session.__aenter__ = AsyncMock(return_value=session, side_effect=open_error)
        session.__aexit__ = AsyncMock(return_value=False)
        session.execute = AsyncMock(
            return_value=recordset if recordset is not None else Recordset(rows=[]),
            side_effect=execute_error,
        )
        session.list_databases = AsyncMock(return_value=databases or [], side_effect=catalog_error)
        session.list_tables = AsyncMock(return_value=tables or [], side_effect=catalog_error)
        factory = MagicMock(return_value=session)
        factory.session = session
        return factory

    return _factory


@pytest.fixture
def profile_data():
    """Valid connection profile fields, as the API accepts them."""
    return {
        "name": "Restaurante Centro",
        "server": "db.local,1433",
        "authentication": "SQL Server Authentication",
        "username": "sa",
        "password": "s3cret!",
        "database": "restaurante",
        "saveCredentials": True,
    }


@pytest.fixture
def saved_connection(store, profile_data):
    """A connection already present in the store."""
    return store.create_connection(ConnectionProfileRequest(**profile_data))


@pytest.fixture
def sample_profile():
    return ConnectionProfileRequest(
        name="local",
        server="localhost",
        authentication=AuthenticationMode.SQL_CREDENTIAL,
        username="sa",
        password="pw",
        database="restaurante",
    )


@pytest.fixture
def test_app(store, fake_session):
    """
    Create FastAPI app wired to the test store and a fake driver.

    Request ID and metrics middleware are tested on their own; these two
    layers can deadlock under test transports in some environments.
    """
    from restodb.main import create_app
    app = create_app(store=store, session_factory=fake_session())
    app.user_middleware = [
        m
        for m in app.user_middleware
        if m.cls.__name__ not in {"RequestIDMiddleware", "MetricsMiddleware"}
    ]
    app.middleware_stack = app.build_middleware_stack()
    return app


@pytest.fixture
def client(test_app):
    """Test client for FastAPI app."""
    return TestClient(test_app, base_url="http://testserver")


@pytest_asyncio.fixture
async def async_client(test_app):
    """Async client for endpoints that can deadlock with sync TestClient."""
    transport = httpx.ASGITransport(app=test_app)
    async with httpx.AsyncClient(
        transport=transport,
        base_url="http://testserver",
        timeout=15.0,
    ) as ac:
        yield ac


@pytest.fixture
def use_driver(test_app, fake_session):
    """Swap the app's driver for a fake configured by the test."""

    def _use(**kwargs):
        factory = fake_session(**kwargs)
        test_app.state.session_factory = factory
        return factory

    return _use
