"""SQLAlchemy async engine & session for SQLite (WAL mode) or PostgreSQL."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import AsyncGenerator

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from energy_store.config import settings
from energy_store.models.base import Base
from energy_store.seeds import seed_reference_data
from energy_store.services.roles import provision_roles

logger = logging.getLogger(__name__)


def _configure_sqlite(dbapi_conn, _connection_record):
    """Apply SQLite PRAGMAs on each new connection."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


DATABASE_URL = settings.resolved_database_url

if settings.is_sqlite:
    # Ensure DB directory exists
    Path(settings.database_path).parent.mkdir(parents=True, exist_ok=True)

engine = create_async_engine(
    DATABASE_URL,
    echo=settings.debug and settings.log_level == "DEBUG",
    pool_size=settings.max_db_connections,
    max_overflow=0,
    pool_pre_ping=not settings.is_sqlite,
)

if settings.is_sqlite:
    event.listen(engine.sync_engine, "connect", _configure_sqlite)

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency — yields an async DB session."""
    async with async_session() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_db() -> None:
    """Create tables, TimescaleDB hypertable and roles, then seed reference data."""
    async with engine.begin() as conn:
        postgres = conn.dialect.name == "postgresql"
        if postgres and settings.use_timescale:
            await conn.execute(text("CREATE EXTENSION IF NOT EXISTS timescaledb"))

        await conn.run_sync(Base.metadata.create_all)

        if postgres and settings.use_timescale:
            await conn.execute(text(
                "SELECT create_hypertable('energy_measurements', 'time', if_not_exists => TRUE)"
            ))
            logger.info("energy_measurements is a TimescaleDB hypertable")
        if settings.provision_roles:
            await provision_roles(conn)

    async with async_session() as db:
        await seed_reference_data(db, include_regions=settings.seed_regions)
    logger.info("Database tables created/verified at %s", engine.url.render_as_string(hide_password=True))
