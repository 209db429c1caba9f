"""
Pytest configuration and fixtures for Kerzenwelt settings tests.

The FastAPI app runs in-process behind ``httpx.ASGITransport`` and talks to a
fresh SQLite file per test.
"""
import asyncio
import os

# Ensure configuration loads without a .env file
os.environ.setdefault("APP_SECRET_KEY", "test-secret-key-for-pytest")
os.environ["APP_ENV"] = "development"
os.environ["DATABASE_AUTO_CREATE"] = "false"

from collections.abc import AsyncGenerator

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from kerzenwelt.client.http import ApiClient
from kerzenwelt.client.notifications import NotificationLog
from kerzenwelt.client.query_cache import QueryCache
from kerzenwelt.client.settings_api import SettingsClient
from kerzenwelt.database import get_db, init_db
from kerzenwelt.main import app
from kerzenwelt.utils.security import create_access_token

BASE_URL = "http://test"


class RequestRecorder:
    """httpx request hook that remembers (method, path) of every request."""

    def __init__(self):
        self.requests: list[tuple[str, str]] = []

    async def __call__(self, request: httpx.Request) -> None:
        self.requests.append((request.method, request.url.path))

    def count(self, method: str, path: str | None = None) -> int:
        return sum(
            1
            for m, p in self.requests
            if m == method and (path is None or p == path)
        )

    def clear(self) -> None:
        self.requests.clear()


@pytest_asyncio.fixture
async def engine(tmp_path):
    """Async engine bound to a throwaway SQLite file."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'kerzenwelt_test.db'}",
        poolclass=NullPool,
    )
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def test_app(session_factory):
    """The FastAPI app with its database dependency pointed at the test database."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def admin_token() -> str:
    return create_access_token("admin@kerzenwelt.hr", is_admin=True, name="Shop Admin")


@pytest.fixture
def admin_headers(admin_token: str) -> dict:
    """Authorization headers with an admin Bearer token."""
    return {"Authorization": f"Bearer {admin_token}"}


@pytest_asyncio.fixture
async def http(test_app) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Raw HTTP client against the in-process app."""
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=test_app),
        base_url=BASE_URL,
    ) as client:
        yield client


@pytest.fixture
def recorder() -> RequestRecorder:
    return RequestRecorder()


@pytest_asyncio.fixture
async def api_client(test_app, admin_token, recorder) -> AsyncGenerator[ApiClient, None]:
    """ApiClient authenticated as admin, recording every request it sends."""
    http_client = httpx.AsyncClient(
        transport=httpx.ASGITransport(app=test_app),
        base_url=BASE_URL,
        event_hooks={"request": [recorder]},
    )
    yield ApiClient(token=admin_token, http_client=http_client)
    await http_client.aclose()


@pytest.fixture
def notifications() -> NotificationLog:
    return NotificationLog()


@pytest_asyncio.fixture
async def query_cache() -> AsyncGenerator[QueryCache, None]:
    cache = QueryCache()
    yield cache
    cache.close()
    # Let cancelled fetches unwind before the loop closes
    await asyncio.sleep(0)


@pytest_asyncio.fixture
async def settings_client(api_client, query_cache, notifications) -> AsyncGenerator[SettingsClient, None]:
    """SettingsClient without polling, so tests control every refetch."""
    client = SettingsClient(
        api_client,
        cache=query_cache,
        notifier=notifications,
        refetch_interval=None,
    )
    yield client
    client.close()


@pytest_asyncio.fixture
async def mock_api():
    """Factory for ApiClients backed by ``httpx.MockTransport`` handlers."""
    clients: list[httpx.AsyncClient] = []

    def factory(handler, recorder: RequestRecorder | None = None) -> ApiClient:
        http_client = httpx.AsyncClient(
            transport=httpx.MockTransport(handler),
            base_url=BASE_URL,
            event_hooks={"request": [recorder]} if recorder else None,
        )
        clients.append(http_client)
        return ApiClient(token="test-token", http_client=http_client)

    yield factory
    for client in clients:
        await client.aclose()
