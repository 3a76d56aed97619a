"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance with its own ClinicalStore and RealtimeHub on app.state. Two apps
built in the same process (tests do this) share nothing.

Lifespan handles shutdown: every open WebSocket is closed when the
server stops.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from careboard import __version__
from careboard.api import api_router
from careboard.config import settings
from careboard.middleware.request_id import RequestIdMiddleware
from careboard.realtime.hub import initialize_hub, shutdown_hub
from careboard.services.clinical_store import ClinicalStore

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Anything before `yield` runs at startup, after `yield` runs at shutdown.
    """
    logger.info(
        "careboard.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
        ws_path=settings.ws_path,
    )

    yield

    logger.info("careboard.shutdown", connections=app.state.hub.connection_count())
    await shutdown_hub(app.state.hub)


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="careboard",
        description="Hospital dashboard backend with a real-time notification hub",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Middleware stack ──────────────────────────────────────
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Collaborators ─────────────────────────────────────────
    app.state.store = ClinicalStore()
    initialize_hub(app)

    app.include_router(api_router)
    return app


# Default app instance (used by uvicorn: careboard.main:app)
app = create_app()
