"""Business logic services — singleton registry."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from energy_store.config import settings

if TYPE_CHECKING:
    from energy_store.services.aggregation_service import AggregationService
    from energy_store.services.alert_service import AlertService
    from energy_store.services.ingestion_service import IngestionService
    from energy_store.services.query_service import QueryService
    from energy_store.services.region_service import RegionService
    from energy_store.services.scheduler import FeedScheduler

logger = logging.getLogger(__name__)

_region_service: RegionService | None = None
_aggregation_service: AggregationService | None = None
_alert_service: AlertService | None = None
_ingestion_service: IngestionService | None = None
_query_service: QueryService | None = None
_scheduler: FeedScheduler | None = None


async def init_services(start_scheduler: bool = True) -> None:
    """Create and wire up all service singletons."""
    global _region_service, _aggregation_service, _alert_service
    global _ingestion_service, _query_service, _scheduler

    from energy_store.services.aggregation_service import AggregationService
    from energy_store.services.alert_service import AlertService
    from energy_store.services.ingestion_service import IngestionService
    from energy_store.services.query_service import QueryService
    from energy_store.services.region_service import RegionService

    _region_service = RegionService()
    _aggregation_service = AggregationService()
    _alert_service = AlertService()
    _ingestion_service = IngestionService(
        region_service=_region_service,
        aggregation_service=_aggregation_service,
        alert_service=_alert_service,
    )
    _query_service = QueryService()

    # Feed polling only when an upstream feed is configured
    if start_scheduler and settings.feed_url:
        from energy_store.services.feed_client import FeedClient
        from energy_store.services.scheduler import FeedScheduler

        _scheduler = FeedScheduler(FeedClient(), _ingestion_service)
        _scheduler.start()
        logger.info("Services initialized with feed scheduler")
    else:
        logger.info("Services initialized — feed polling disabled (ENERGY_STORE_FEED_URL unset)")


async def shutdown_services() -> None:
    """Stop the scheduler."""
    global _scheduler
    if _scheduler:
        await _scheduler.stop()
        _scheduler = None


def feed_enabled() -> bool:
    return _scheduler is not None and _scheduler.running


def get_region_service() -> RegionService:
    if _region_service is None:
        raise RuntimeError("Services not initialized — call init_services() first")
    return _region_service


def get_aggregation_service() -> AggregationService:
    if _aggregation_service is None:
        raise RuntimeError("Services not initialized — call init_services() first")
    return _aggregation_service


def get_alert_service() -> AlertService:
    if _alert_service is None:
        raise RuntimeError("Services not initialized — call init_services() first")
    return _alert_service


def get_ingestion_service() -> IngestionService:
    if _ingestion_service is None:
        raise RuntimeError("Services not initialized — call init_services() first")
    return _ingestion_service


def get_query_service() -> QueryService:
    if _query_service is None:
        raise RuntimeError("Services not initialized — call init_services() first")
    return _query_service
