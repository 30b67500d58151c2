from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI

from shared.api.middleware import CorrelationIdMiddleware
from shared.config import Settings, get_settings
from shared.exceptions import register_exception_handlers
from shared.health import router as health_router
from shared.infrastructure.database import DatabaseSessionFactory
from shared.infrastructure.kvstore import IKeyValueStore, SQLAlchemyKeyValueStore
from shared.infrastructure.observability import configure_logging, get_logger

from clinical.api.routes import router as clinical_router

logger = get_logger(__name__)


def _lifespan(store: Optional[IKeyValueStore], settings: Settings):
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if store is not None:
            # injected by the caller, which owns its lifecycle
            yield
            return

        db = DatabaseSessionFactory(
            settings.database_url,
            echo=settings.debug,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
        )
        await db.create_tables()
        app.state.store = SQLAlchemyKeyValueStore(db.session_factory)
        logger.info("Application started", environment=settings.environment)
        try:
            yield
        finally:
            await db.dispose()

    return lifespan


def create_app(store: Optional[IKeyValueStore] = None, settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the API application.

    Args:
        store: Key-value store to serve from; when omitted one backed by
            ``DATABASE_URL`` is opened on startup and closed on shutdown
        settings: Overrides ``get_settings()``
    """
    settings = settings or get_settings()
    configure_logging(
        log_level=settings.log_level,
        json_logs=settings.json_logs,
        redact_phi=not (settings.is_local or settings.is_dev),
    )

    app = FastAPI(
        title="Clinical Notes API",
        version="1.0.0",
        debug=settings.debug,
        lifespan=_lifespan(store, settings),
    )
    app.state.settings = settings
    if store is not None:
        app.state.store = store

    # X-Request-ID → request.state.request_id + log context
    app.add_middleware(CorrelationIdMiddleware)

    # Routers
    app.include_router(health_router)
    app.include_router(clinical_router)

    # Centralized error handling → {code, message, details?, correlation_id?}
    register_exception_handlers(app)

    return app
