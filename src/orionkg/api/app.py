"""FastAPI application initialization and configuration."""
from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from orionkg.config import Config
from orionkg.core.logging_config import setup_logging, get_logger
from orionkg.api.dependencies import (
    initialize_services,
    shutdown_services,
    get_config,
)
from orionkg.api.routers import (
    events_router,
    graph_router,
    profile_router,
    status_router,
    suppression_router,
    timeline_router,
)
from orionkg.config.constants import APP_VERSION


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Manage startup and shutdown lifecycle."""
    # --- startup ---
    initialize_services()
    config = get_config()
    setup_logging(config.logging)
    _logger = get_logger(__name__)
    _logger.info("orionkg API ready (data dir %s)", config.data_dir)

    yield

    # --- shutdown ---
    shutdown_services()


# Create FastAPI app
app = FastAPI(
    title="orionkg API",
    description="Personal knowledge graph, activity timeline and cognitive profile",
    version=APP_VERSION,
    lifespan=lifespan,
)

# CORS middleware, origins from config, defaults to localhost-only
_cors_origins = Config.load().server.cors_origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(status_router, prefix="/api", tags=["status"])
app.include_router(graph_router)
app.include_router(timeline_router)
app.include_router(profile_router)
app.include_router(suppression_router)
app.include_router(events_router)
