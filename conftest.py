import pytest
from fastapi.testclient import TestClient

from alertqueue.api.main import create_app
from alertqueue.core.alert_queue import AlertQueueCoordinator
from alertqueue.core.config import Settings
from alertqueue.services.presenter import AlertPresenter
from alertqueue.services.sse import EventBroadcaster
from alertqueue.utils.security import limiter


@pytest.fixture
def coordinator():
    """A fresh, idle coordinator for each test."""
    return AlertQueueCoordinator()


@pytest.fixture
def broadcaster():
    return EventBroadcaster(queue_size=100)


@pytest.fixture
def presenter(coordinator, broadcaster):
    """A presenter with a short passive duration so timeouts are quick to test."""
    return AlertPresenter(coordinator, broadcaster, passive_duration=0.05)


@pytest.fixture
def settings():
    return Settings(api_key="test-key", passive_alert_duration=60.0, sse_keep_alive_seconds=0.1)


@pytest.fixture
def app(settings):
    """
    FastAPI application with its own queue, so no state leaks between tests.
    """
    limiter.reset()
    return create_app(settings)


@pytest.fixture
def client(app):
    """
    FastAPI TestClient fixture, authenticated with the test API key.
    """
    return TestClient(app, headers={"X-API-Key": "test-key"})
