"""Shared test fixtures for the service ledger test suite."""

import pytest

from clients.memory_store import MemoryStore
from core.config import LedgerConfig
from core.context_router import ContextRouter, UIState
from core.event_bus import EventBus
from core.models import BusinessVertical, Document, DocumentKind
from core.services.document_service import DocumentService
from core.services.editing_session import EditingSession
from utils.timezone import now_utc


# =============================================================================
# RENDERER DOUBLE
# =============================================================================


class RecordingRenderer:
    """Renderer that remembers every view it was handed."""

    def __init__(self):
        self.views = []

    def render(self, view):
        self.views.append(view)

    @property
    def last(self):
        return self.views[-1] if self.views else None


# =============================================================================
# INFRASTRUCTURE FIXTURES
# =============================================================================


@pytest.fixture
def store():
    """Empty in-process store."""
    return MemoryStore()


@pytest.fixture
def config():
    return LedgerConfig()


@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def renderer():
    return RecordingRenderer()


# =============================================================================
# DOMAIN FIXTURES
# =============================================================================


@pytest.fixture
def document():
    """Blank concrete invoice, not persisted."""
    now = now_utc()
    return Document(
        id="doc-1",
        document_kind=DocumentKind.INVOICE,
        business_vertical=BusinessVertical.CONCRETE,
        created_at=now,
        updated_at=now,
    )


@pytest.fixture
def document_service(store, config, event_bus):
    return DocumentService(store, config, event_bus)


@pytest.fixture
def router(config, event_bus, renderer):
    return ContextRouter(config, event_bus, renderer)


@pytest.fixture
def session(document_service, router, config, event_bus):
    """Editing session with no context selected yet."""
    return EditingSession(document_service, router, config, event_bus)


@pytest.fixture
def concrete_invoice(session):
    """Session focused on the concrete section of an invoice."""
    session.select_context(UIState(active_view="invoice", selected_vertical="concrete"))
    return session


@pytest.fixture
def masonry_estimate(session):
    """Session focused on the masonry section of an estimate."""
    session.select_context(UIState(active_view="estimate", selected_vertical="masonry"))
    return session