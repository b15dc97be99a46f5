"""API access logging middleware."""

from __future__ import annotations

import logging
import time

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from energy_store.models.access_log import ApiAccessLog

logger = logging.getLogger(__name__)


class AccessLogMiddleware(BaseHTTPMiddleware):
    """Writes one api_access_log row per request; never fails the request."""

    def __init__(self, app: ASGIApp, session_factory: async_sessionmaker[AsyncSession]):
        super().__init__(app)
        self._session_factory = session_factory

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = int((time.perf_counter() - started) * 1000)

        size = response.headers.get("content-length")
        entry = ApiAccessLog(
            endpoint=request.url.path[:200],
            method=request.method,
            client_ip=request.client.host if request.client else None,
            user_agent=request.headers.get("user-agent"),
            response_time_ms=elapsed_ms,
            status_code=response.status_code,
            parameters=dict(request.query_params) or None,
            response_size=int(size) if size and size.isdigit() else None,
        )
        try:
            async with self._session_factory() as db:
                db.add(entry)
                await db.commit()
        except Exception as e:
            logger.error("Access log write failed: %s", e)
        return response
