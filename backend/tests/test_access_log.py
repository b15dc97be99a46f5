"""Tests for the API access log middleware."""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from energy_store import main
from energy_store.config import settings
from energy_store.models.access_log import ApiAccessLog
from energy_store.models.base import Base


@pytest.mark.asyncio
async def test_requests_are_logged(monkeypatch):
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    monkeypatch.setattr(settings, "access_log_enabled", True)
    monkeypatch.setattr(main, "async_session", session_factory)
    app = main.create_app()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        resp = await c.get("/api/ping", params={"probe": "1"}, headers={"User-Agent": "pytest"})
    assert resp.status_code == 200

    async with session_factory() as db:
        entries = (await db.execute(select(ApiAccessLog))).scalars().all()
    assert len(entries) == 1
    entry = entries[0]
    assert entry.endpoint == "/api/ping"
    assert entry.method == "GET"
    assert entry.status_code == 200
    assert entry.user_agent == "pytest"
    assert entry.parameters == {"probe": "1"}
    assert entry.response_time_ms >= 0

    await engine.dispose()


@pytest.mark.asyncio
async def test_logging_failure_does_not_break_request(monkeypatch):
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")  # no tables
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    monkeypatch.setattr(settings, "access_log_enabled", True)
    monkeypatch.setattr(main, "async_session", session_factory)
    app = main.create_app()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        resp = await c.get("/api/ping")
    assert resp.status_code == 200

    await engine.dispose()
