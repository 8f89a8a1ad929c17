"""
Social Index API — entry point.

Mirrors ledger-confirmed social actions (profiles, posts, likes, comments,
follows, tips, shares) into a relational store and serves timelines, feeds,
profile statistics, trending users and notification inboxes from it.

Startup sequence:
  1. Configure OTel tracing (→ Jaeger via OTLP)
  2. Build the entity store and create tables if not present
  3. Wire notification fan-out to the store
  4. Start the ledger JSON-RPC client
  5. Expose Prometheus /metrics endpoint

Run with:  uvicorn social_index.main:app
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from prometheus_client import make_asgi_app

from social_index.clients.ledger_client import LedgerClient
from social_index.config import Settings, settings as default_settings
from social_index.database import Store
from social_index.errors import register_error_handlers
from social_index.fanout import Fanout
from social_index.routers import contract, interactions, notifications, posts, users
from social_index.telemetry import instrument_app, setup_tracing

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[Store] = None,
) -> FastAPI:
    """
    Build the API. The store and ledger client are created (or adopted) by
    the lifespan and handed to handlers via app.state; there are no
    module-level connection singletons.
    """
    settings = settings or default_settings

    if settings.tracing_enabled:
        setup_tracing(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting Social Index API (env=%s)", settings.environment)

        app_store = store or Store.from_settings(settings)
        await app_store.init()
        ledger = LedgerClient(settings)
        await ledger.start()

        app.state.settings = settings
        app.state.store = app_store
        app.state.fanout = Fanout(app_store, settings)
        app.state.ledger = ledger

        logger.info("Entity store ready. API ready.")
        yield

        logger.info("Shutting down...")
        await ledger.stop()
        await app_store.dispose()

    app = FastAPI(
        title="Social Index API",
        description=(
            "Eventually-consistent index of ledger-confirmed social actions: "
            "mutation gateway, notification fan-out and read/aggregation views."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    register_error_handlers(app)

    # ── Routers ────────────────────────────────────────────────────────────
    app.include_router(users.router, prefix="/users", tags=["Users"])
    app.include_router(posts.router, prefix="/posts", tags=["Posts"])
    app.include_router(interactions.router, prefix="/interactions", tags=["Interactions"])
    app.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])
    app.include_router(contract.router, prefix="/contract", tags=["Contract"])

    # ── Prometheus metrics endpoint ────────────────────────────────────────
    app.mount("/metrics", make_asgi_app())

    if settings.tracing_enabled:
        instrument_app(app)

    @app.get("/health", tags=["Health"])
    async def health():
        return {"status": "ok", "service": settings.service_name}

    return app


app = create_app()
