"""API route registration."""

from fastapi import APIRouter

from energy_store.api.routes import aggregates, alerts, health, ingest, measurements, regions

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(ingest.router, prefix="/ingest", tags=["ingest"])
api_router.include_router(measurements.router, tags=["measurements"])
api_router.include_router(aggregates.router, prefix="/aggregates", tags=["aggregates"])
api_router.include_router(regions.router, tags=["regions"])
api_router.include_router(alerts.router, prefix="/alerts", tags=["alerts"])
