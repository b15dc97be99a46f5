"""Tests for FeedClient and FeedScheduler with mocked HTTP and ingestion."""

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from energy_store.schemas.ingest import IngestBatch
from energy_store.services import feed_client
from energy_store.services.feed_client import FeedClient, FeedError
from energy_store.services.scheduler import FeedScheduler

_RealAsyncClient = httpx.AsyncClient


def _mock_http(handler):
    """Patch httpx.AsyncClient so requests go to ``handler``."""

    def factory(**kwargs):
        return _RealAsyncClient(transport=httpx.MockTransport(handler), **kwargs)

    return patch.object(feed_client.httpx, "AsyncClient", factory)


@pytest.mark.asyncio
async def test_fetch_parses_feature_collection(feature, make_batch):
    payload = make_batch([feature("Lagos", 0.78)])

    with _mock_http(lambda request: httpx.Response(200, json=payload)):
        batch = await FeedClient(url="http://feed.test/latest.geojson").fetch()

    assert isinstance(batch, IngestBatch)
    assert batch.features[0].properties["ADM1_EN"] == "Lagos"


@pytest.mark.asyncio
async def test_fetch_http_error():
    with _mock_http(lambda request: httpx.Response(503)):
        with pytest.raises(FeedError):
            await FeedClient(url="http://feed.test/latest.geojson").fetch()


@pytest.mark.asyncio
async def test_fetch_rejects_error_payload():
    payload = {"type": "FeatureCollection", "features": [], "error": "upstream timeout"}
    with _mock_http(lambda request: httpx.Response(200, json=payload)):
        with pytest.raises(FeedError, match="upstream timeout"):
            await FeedClient(url="http://feed.test/latest.geojson").fetch()


@pytest.mark.asyncio
async def test_fetch_rejects_non_geojson():
    with _mock_http(lambda request: httpx.Response(200, json={"status": "ok"})):
        with pytest.raises(FeedError):
            await FeedClient(url="http://feed.test/latest.geojson").fetch()


def _session_factory(db_session):
    @asynccontextmanager
    async def factory():
        yield db_session

    return factory


@pytest.mark.asyncio
async def test_poll_feed_ingests_batch(db_session, feature, make_batch):
    feed = MagicMock()
    feed.url = "http://feed.test"
    feed.fetch = AsyncMock(return_value=IngestBatch.model_validate(make_batch([feature("Lagos", 0.7)])))
    ingestion = MagicMock()
    ingestion.ingest = AsyncMock(return_value=MagicMock(
        measurements_written=4, alerts_fired=0, status="success"
    ))

    scheduler = FeedScheduler(feed, ingestion, session_factory=_session_factory(db_session))
    written = await scheduler.poll_feed()

    assert written == 4
    ingestion.ingest.assert_awaited_once()
    assert ingestion.ingest.await_args.args[0] is db_session


@pytest.mark.asyncio
async def test_poll_feed_failure_is_logged_not_raised(db_session):
    feed = MagicMock()
    feed.fetch = AsyncMock(side_effect=FeedError("down"))
    ingestion = MagicMock()
    ingestion.ingest = AsyncMock()

    scheduler = FeedScheduler(feed, ingestion, session_factory=_session_factory(db_session))

    assert await scheduler.poll_feed() == 0
    ingestion.ingest.assert_not_awaited()


@pytest.mark.asyncio
async def test_scheduler_start_stop(db_session):
    feed = MagicMock()
    feed.url = "http://feed.test"
    scheduler = FeedScheduler(feed, MagicMock(), session_factory=_session_factory(db_session))

    scheduler.start()
    assert scheduler.running is True

    await scheduler.stop()
    assert scheduler.running is False
