"""Health check."""

from fastapi import APIRouter

from energy_store import __version__
from energy_store.schemas.system import HealthResponse
from energy_store.services import feed_enabled

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Lightweight connectivity check."""
    return HealthResponse(version=__version__, feed_enabled=feed_enabled())


@router.get("/ping")
async def ping():
    """Ultra-lightweight ping."""
    return {"status": "ok"}
