"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from api.actions import create_actions_router
from api.data import create_data_router
from api.errors import register_error_handlers
from api.middleware import RequestIDMiddleware
from clients import MemoryStore, ValkeyClient
from core.config import LedgerConfig, load_config
from core.event_bus import EventBus
from core.services.document_service import DocumentService, KeyValueStore
from core.services.editing_session import EditingSession

logger = logging.getLogger(__name__)


def create_app(config: LedgerConfig | None = None, store: KeyValueStore | None = None) -> FastAPI:
    """
    Build the application with one editing session.

    Args:
        config: Defaults to load_config()
        store: Defaults to ValkeyClient when valkey_url is set, else MemoryStore
    """
    config = config or load_config()
    logging.basicConfig(level=config.log_level.upper())

    if store is None:
        if config.valkey_url:
            store = ValkeyClient(config.valkey_url)
        else:
            logger.info("No Valkey URL configured; documents are kept in memory")
            store = MemoryStore()

    event_bus = EventBus()
    session = EditingSession(DocumentService(store, config, event_bus), config=config, event_bus=event_bus)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        store.close()

    app = FastAPI(title="Service Ledger", lifespan=lifespan)
    app.state.session = session
    app.add_middleware(RequestIDMiddleware)
    register_error_handlers(app)

    app.include_router(create_data_router(session), prefix="/api")
    app.include_router(create_actions_router(session), prefix="/api")

    return app
