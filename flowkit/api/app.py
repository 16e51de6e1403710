"""
Flowkit HTTP app.

Serves the compile and version-store operations over FastAPI. The store
is built from Settings unless one is injected (tests inject an in-memory
store).

Usage:
    uvicorn flowkit.api.app:app --port 8090
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .._version import __version__
from ..adapter import default_adapters
from ..component.registry import default_registry
from ..config import Settings, get_settings
from ..logging_setup import setup_logging
from ..store.atomic import AtomicStore
from ..store.sqlite import SqliteDesignRepository
from .routes import router


def build_store(settings: Settings) -> AtomicStore:
    """AtomicStore backed by SQLite files under settings.data_dir."""
    repository = SqliteDesignRepository(
        settings.data_dir,
        wal_mode=settings.wal_mode,
        busy_timeout_ms=settings.busy_timeout_ms,
    )
    registry = default_registry()
    registry.freeze()
    return AtomicStore(repository, registry, default_adapters(), settings=settings)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Install logging handlers for the server process."""
    setup_logging(app.state.settings)
    yield


def create_app(store: Optional[AtomicStore] = None, settings: Optional[Settings] = None) -> FastAPI:
    """Create the Flowkit FastAPI app.

    Args:
        store: Store to serve (built from settings when omitted)
        settings: Settings (process settings when omitted)
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Flowkit",
        description=(
            "Compile conversational flow designs into channel execution plans "
            "and govern their draft and production versions."
        ),
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store or build_store(settings)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # API routes
    app.include_router(router, prefix="/api/v1")

    @app.get("/api")
    async def api_info():
        store = app.state.store
        return {
            "service": "flowkit",
            "version": __version__,
            "channels": store.adapters.names(),
            "component_kinds": store.registry.kinds(),
            "default_channel": settings.default_channel,
        }

    @app.get("/health")
    async def health():
        return {"status": "healthy", "service": "flowkit"}

    return app


app = create_app()
