"""Test configuration and fixtures for the smart checkout backend."""

import pytest
from fastapi.testclient import TestClient

from smart_checkout.server.context import build_context
from smart_checkout.server.main import create_app
from smart_checkout.shared.config import Settings


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from any .env file or environment of the machine."""
    return Settings(
        _env_file=None,
        SSE_HEARTBEAT_INTERVAL_S=30.0,
        WS_HEARTBEAT_INTERVAL_S=30.0,
        SUBSCRIBER_QUEUE_MAXSIZE=4,
        ADMIN_EMAIL=None,
        EMAIL_API_URL=None,
        EMAIL_API_KEY=None,
    )


@pytest.fixture
def context(settings):
    return build_context(settings)


@pytest.fixture(name="client")
def client_fixture(context):
    """A test client over an isolated app; entered so HTTP calls and WebSockets share one event loop."""
    with TestClient(create_app(context)) as client:
        yield client
