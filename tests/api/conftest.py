"""API test fixtures — TestClient over an in-memory application."""

import pytest
from starlette.testclient import TestClient

from api.app import create_app
from clients.memory_store import MemoryStore
from core.config import LedgerConfig


# =============================================================================
# APP & CLIENT FIXTURES
# =============================================================================


@pytest.fixture
def api_store():
    return MemoryStore()


@pytest.fixture
def app(api_store):
    """Application with error handlers, request ids and data/actions routes."""
    return create_app(config=LedgerConfig(), store=api_store)


@pytest.fixture
def client(app):
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def act(client):
    """POST one action and return the response."""

    def _act(domain: str, action: str, **data):
        return client.post("/api/actions", json={"domain": domain, "action": action, "data": data})

    return _act


@pytest.fixture
def concrete_invoice(act):
    response = act("ledger", "select_context", active_view="invoice", selected_vertical="concrete")
    assert response.status_code == 200
    return response.json()["data"]


@pytest.fixture
def masonry_estimate(act):
    response = act("ledger", "select_context", active_view="estimate", selected_vertical="masonry")
    assert response.status_code == 200
    return response.json()["data"]
