"""Pytest configuration and fixtures."""
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from app.main import app
from app.database import get_store
from app.services.dispatch import (
    InMemoryAlarmScheduler,
    LoggingDispatchSink,
    get_alarm_scheduler,
    get_dispatch_sink,
)
from app.store.memory import MemoryKeyValueStore


@pytest.fixture
def store():
    """Empty in-memory key-value store."""
    return MemoryKeyValueStore()


@pytest_asyncio.fixture
async def app_client(store):
    """
    Create a test client backed by an in-memory store.

    This fixture:
    - Overrides the store, dispatch sink and alarm scheduler dependencies
    - Yields an async HTTP client for testing
    - Removes the overrides after each test
    """
    sink = LoggingDispatchSink()
    alarms = InMemoryAlarmScheduler()

    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_dispatch_sink] = lambda: sink
    app.dependency_overrides[get_alarm_scheduler] = lambda: alarms

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as client:
        yield client

    app.dependency_overrides.clear()
