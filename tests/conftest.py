"""
Test fixtures and configuration.

Every test gets a fresh in-memory SQLite store (aiosqlite) and an app whose
lifespan has run, so handlers see the same store the fixtures write to.
"""
import os

os.environ.setdefault("TRACING_ENABLED", "false")

from typing import AsyncGenerator  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from social_index.config import Settings  # noqa: E402
from social_index.database import Store  # noqa: E402
from social_index.fanout import Fanout  # noqa: E402
from social_index.main import create_app  # noqa: E402
from tests.helpers import BrokenStore  # noqa: E402

TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        database_url=TEST_DATABASE_URL,
        tracing_enabled=False,
        contract_address="0xC0FFEE",
        ledger_rpc_url="http://ledger.test",
    )


@pytest_asyncio.fixture
async def store() -> AsyncGenerator[Store, None]:
    """In-memory store shared across sessions through a single connection."""
    engine = create_async_engine(TEST_DATABASE_URL, poolclass=StaticPool)
    store = Store(engine)
    await store.init()
    yield store
    await store.dispose()


@pytest.fixture
def fanout(store: Store, settings: Settings) -> Fanout:
    return Fanout(store, settings)


@pytest_asyncio.fixture
async def app(settings: Settings, store: Store) -> AsyncGenerator[FastAPI, None]:
    app = create_app(settings, store=store)
    async with app.router.lifespan_context(app):
        yield app


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def broken_fanout(app: FastAPI, settings: Settings) -> Fanout:
    """Swap the app's fan-out for one whose store always fails."""
    fanout = Fanout(BrokenStore(), settings)
    app.state.fanout = fanout
    return fanout


@pytest_asyncio.fixture
async def file_store(tmp_path) -> AsyncGenerator[Store, None]:
    """
    File-backed store with a connection per session, so concurrent requests
    run on separate connections and really interleave.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'index.db'}")
    store = Store(engine)
    await store.init()
    yield store
    await store.dispose()


@pytest_asyncio.fixture
async def file_client(settings: Settings, file_store: Store) -> AsyncGenerator[AsyncClient, None]:
    app = create_app(settings, store=file_store)
    async with app.router.lifespan_context(app):
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client


@pytest_asyncio.fixture
async def store_down(app: FastAPI, tmp_path) -> AsyncGenerator[None, None]:
    """Point request handlers at a store whose database file cannot be opened."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'index.db'}")
    app.state.store = Store(engine)
    yield
    await engine.dispose()
