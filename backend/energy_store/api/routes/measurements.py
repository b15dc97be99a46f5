"""Current state, regional summary and ingestion quality views."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from energy_store.database import get_db
from energy_store.schemas.measurements import CurrentMeasurement, QualityLogOut, RegionalSummaryOut
from energy_store.services import get_query_service

router = APIRouter()


@router.get("/measurements/current", response_model=list[CurrentMeasurement])
async def current_measurements(
    region: str | None = None,
    source: str | None = None,
    db: AsyncSession = Depends(get_db),
):
    """Latest measurement per region and energy source."""
    return await get_query_service().current_state(db, region, source)


@router.get("/summaries/regional", response_model=list[RegionalSummaryOut])
async def regional_summary(
    zone: str | None = None,
    source: str | None = None,
    db: AsyncSession = Depends(get_db),
):
    """Latest per-zone summary with best and worst performing region."""
    return await get_query_service().regional_summary(db, zone, source)


@router.get("/quality-log", response_model=list[QualityLogOut])
async def quality_log(
    limit: int = Query(50, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    """Most recent ingestion outcomes."""
    return await get_query_service().quality_log(db, limit)
