"""Test fixtures — in-memory SQLite database and FastAPI test client."""

from datetime import datetime
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from energy_store.config import settings
from energy_store.database import get_db
from energy_store.main import create_app
from energy_store.models.base import Base
from energy_store.seeds import seed_reference_data
from energy_store.services import init_services, shutdown_services


@pytest_asyncio.fixture
async def db_session():
    """Provide an async in-memory SQLite session with sources and states seeded."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        await seed_reference_data(session)
        yield session

    await engine.dispose()


@pytest_asyncio.fixture
async def client(db_session: AsyncSession, monkeypatch):
    """Provide an async test client with overridden DB dependency."""
    monkeypatch.setattr(settings, "access_log_enabled", False)
    app = create_app()
    await init_services(start_scheduler=False)

    async def _override_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    await shutdown_services()


def _feature(name: str, solar: Any, wind: Any = 0.5, hydro: Any = 0.3,
             composite: Any = 0.45, **extra: Any) -> dict[str, Any]:
    props = {
        "ADM1_EN": name,
        "solar_norm": solar,
        "wind_norm": wind,
        "hydro_norm": hydro,
        "composite_norm": composite,
        "solar_class": "High" if isinstance(solar, float) and solar >= 0.7 else "Moderate",
        "confidence_level": "High",
        "recommended_energy": "Solar",
        "last_updated": "2026-03-01",
    }
    props.update(extra)
    return {
        "type": "Feature",
        "geometry": {"type": "Point", "coordinates": [3.39, 6.45]},
        "properties": props,
    }


@pytest.fixture
def feature():
    """Build one GeoJSON feature for a state."""
    return _feature


@pytest.fixture
def make_batch():
    """Build a FeatureCollection payload for a timestamp."""

    def _make(features: list[dict[str, Any]], timestamp: datetime | None = None,
              **extra: Any) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "type": "FeatureCollection",
            "features": features,
            "national_scores": {"solar": 0.71},
            "features_updated": len(features),
        }
        if timestamp is not None:
            payload["timestamp"] = timestamp.isoformat()
        payload.update(extra)
        return payload

    return _make
