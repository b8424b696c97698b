"""Shared fixtures: in-memory SQLite datastore, mocked outbound HTTP, API client."""

import os

os.environ.setdefault("PFA_DATABASE_URL", "sqlite+aiosqlite://")

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401  registers tables
from app.database import Base
from app.models.rule import SubmissionRule
from app.models.webhook import Webhook


class OutboundRecorder:
    """MockTransport handler that records requests and answers with ``responder``."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.responder = lambda request: httpx.Response(200, text="ok")

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responder(request)


class FakeSleep:
    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest_asyncio.fixture
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


@pytest.fixture
def outbound():
    return OutboundRecorder()


@pytest.fixture
def fake_sleep():
    return FakeSleep()


@pytest_asyncio.fixture
async def http_client(outbound):
    async with httpx.AsyncClient(transport=httpx.MockTransport(outbound)) as client:
        yield client


@pytest.fixture
def make_webhook(session_factory):
    async def _make(**overrides) -> Webhook:
        values = {
            "name": "CRM hook",
            "url": "https://hooks.example.com/in",
            "method": "POST",
            "headers": {},
            "auth_type": "none",
            "auth_config": {},
            "is_active": True,
        }
        values.update(overrides)
        async with session_factory() as s:
            webhook = Webhook(**values)
            s.add(webhook)
            await s.commit()
            return webhook
    return _make


@pytest.fixture
def make_rule(session_factory):
    async def _make(**overrides) -> SubmissionRule:
        values = {
            "name": "rule",
            "campaign_id": "camp-1",
            "priority": 0,
            "is_active": True,
            "conditions": {},
            "actions": {},
        }
        values.update(overrides)
        async with session_factory() as s:
            rule = SubmissionRule(**values)
            s.add(rule)
            await s.commit()
            return rule
    return _make


@pytest_asyncio.fixture
async def api_client(session_factory, outbound):
    """ASGI client with the datastore and outbound HTTP swapped for test doubles."""
    from app.api.deps import get_http_client
    from app.database import get_db
    from app.main import app

    async def _get_db():
        async with session_factory() as s:
            yield s

    async def _get_http_client():
        async with httpx.AsyncClient(transport=httpx.MockTransport(outbound)) as client:
            yield client

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_http_client] = _get_http_client
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    from app.middleware.auth import create_admin_token
    return {"Authorization": f"Bearer {create_admin_token('admin@example.com')}"}
