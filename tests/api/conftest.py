"""
Fixtures for HTTP-level tests.

Each test gets a fresh app whose settings are overridden through
FastAPI's dependency_overrides, and the shared client cache is reset
so in-memory stores never leak between tests.
"""

from typing import Callable, Iterator

import pytest
from fastapi.testclient import TestClient

from src.api import dependencies
from src.config.settings import Settings, get_settings
from src.main import create_app


def make_settings(**overrides) -> Settings:
    values = {
        "storage_account_name": "",
        "storage_account_key": "",
        "cosmos_db_connection": "",
        "storage_mock_mode": True,
        "cosmos_mock_mode": True,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def client_factory() -> Iterator[Callable[..., TestClient]]:
    """Build TestClients for apps running with the given settings overrides."""
    clients: list[TestClient] = []

    def build(**overrides) -> TestClient:
        settings = make_settings(**overrides)
        app = create_app()
        app.dependency_overrides[get_settings] = lambda: settings
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    dependencies.close_clients()
    yield build

    for client in clients:
        client.__exit__(None, None, None)
    dependencies.close_clients()


@pytest.fixture
def client(client_factory) -> TestClient:
    """App running entirely on in-memory stores."""
    return client_factory()


@pytest.fixture
def unconfigured_client(client_factory) -> TestClient:
    """App with no storage or Cosmos credentials and no mock modes."""
    return client_factory(storage_mock_mode=False, cosmos_mock_mode=False)
