"""APScheduler-based feed polling."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from energy_store.config import settings
from energy_store.database import async_session

if TYPE_CHECKING:
    from energy_store.services.feed_client import FeedClient
    from energy_store.services.ingestion_service import IngestionService

logger = logging.getLogger(__name__)


class FeedScheduler:
    """Pulls the GeoJSON feed periodically and ingests it."""

    def __init__(
        self,
        feed_client: FeedClient,
        ingestion_service: IngestionService,
        session_factory: async_sessionmaker[AsyncSession] = async_session,
    ):
        self._feed = feed_client
        self._ingestion = ingestion_service
        self._session_factory = session_factory
        self._scheduler = AsyncIOScheduler(
            job_defaults={"coalesce": True, "max_instances": 1}
        )
        self._started = False

    @property
    def running(self) -> bool:
        return self._started and self._scheduler.running

    def start(self) -> None:
        minutes = settings.feed_poll_minutes
        self._scheduler.add_job(
            self.poll_feed,
            "interval",
            minutes=minutes,
            id="poll_feed",
            name="Poll GeoJSON suitability feed",
            replace_existing=True,
        )
        self._scheduler.start()
        self._started = True
        logger.info("Feed scheduler started — polling %s every %d min", self._feed.url, minutes)

    async def stop(self) -> None:
        self._started = False
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            # shutdown is dispatched onto the event loop
            await asyncio.sleep(0)
            logger.info("Feed scheduler stopped")

    async def poll_feed(self) -> int:
        """Fetch and ingest one batch. Returns measurements written (0 on failure)."""
        try:
            batch = await self._feed.fetch()
            async with self._session_factory() as db:
                result = await self._ingestion.ingest(db, batch)
            logger.info(
                "Feed poll: %d measurements, %d alerts (%s)",
                result.measurements_written, result.alerts_fired, result.status,
            )
            return result.measurements_written
        except Exception as e:
            logger.error("Feed poll failed: %s", e)
            return 0
