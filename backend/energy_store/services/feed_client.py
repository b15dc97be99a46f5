"""HTTP client for the upstream GeoJSON suitability feed."""

from __future__ import annotations

import logging

import httpx

from energy_store.config import settings
from energy_store.schemas.ingest import IngestBatch

logger = logging.getLogger(__name__)


class FeedError(Exception):
    """Feed unreachable or returned something that is not a FeatureCollection."""


class FeedClient:
    def __init__(self, url: str | None = None, timeout: float | None = None):
        self.url = url if url is not None else settings.feed_url
        self.timeout = timeout if timeout is not None else settings.feed_timeout_seconds

    async def fetch(self) -> IngestBatch:
        """Download and parse the current FeatureCollection."""
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.get(self.url)
                resp.raise_for_status()
                payload = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise FeedError(f"Feed request to {self.url} failed: {e}") from e

        if not isinstance(payload, dict) or payload.get("type") != "FeatureCollection":
            raise FeedError(f"Feed at {self.url} did not return a FeatureCollection")
        if payload.get("error"):
            raise FeedError(f"Feed reported an error: {payload['error']}")

        logger.debug("Fetched %d features from %s", len(payload.get("features", [])), self.url)
        return IngestBatch.model_validate(payload)
