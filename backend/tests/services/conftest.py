"""Service test fixtures — app factory and httpx client over ASGITransport.

Invariants:
    - Every test gets a fresh app (fresh executor, fresh counter)
    - The lifecycle observer is a RecordingObserver unless a test passes its own

Design Decisions:
    - httpx AsyncClient + ASGITransport: exercises the real routing, middleware and
      error handlers without a socket
"""

from contextlib import asynccontextmanager

import pytest
from httpx import ASGITransport, AsyncClient

from process_api.config import Settings
from process_api.main import create_app

from tests.services.doubles import RecordingObserver


@pytest.fixture
def observer():
    return RecordingObserver()


@pytest.fixture
def make_client(observer):
    """Factory: `async with make_client(executor=..., request_timeout=...) as c:`."""

    @asynccontextmanager
    async def _make(executor=None, **settings_overrides):
        settings = Settings(_env_file=None, **settings_overrides)
        app = create_app(settings, executor=executor, observer=observer)
        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test",
        ) as c:
            yield c

    return _make


@pytest.fixture
async def client(make_client):
    """FastAPI test client with default settings and the real executor."""
    async with make_client() as c:
        yield c
