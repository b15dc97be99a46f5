"""Daily and monthly rollups."""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from energy_store.database import get_db
from energy_store.errors import UnknownSourceError
from energy_store.schemas.measurements import DailyAggregateOut, MonthlyAggregateOut
from energy_store.services import get_aggregation_service, get_query_service, get_region_service

router = APIRouter()


@router.get("/daily", response_model=list[DailyAggregateOut])
async def daily_aggregates(
    region_id: int | None = None,
    source: str | None = None,
    start: date | None = None,
    end: date | None = None,
    db: AsyncSession = Depends(get_db),
):
    """Daily mean/min/max/stddev per region and source."""
    return await get_query_service().daily_aggregates(db, region_id, source, start, end)


@router.get("/monthly", response_model=list[MonthlyAggregateOut])
async def monthly_aggregates(
    region_id: int | None = None,
    source: str | None = None,
    db: AsyncSession = Depends(get_db),
):
    """Monthly mean, percentiles and month-over-month trend."""
    return await get_query_service().monthly_aggregates(db, region_id, source)


@router.post("/rebuild")
async def rebuild_aggregates(region_id: int, source: str, db: AsyncSession = Depends(get_db)):
    """Recompute every rollup for one region/source from raw measurements."""
    try:
        energy_source = await get_region_service().get_source(db, source)
    except UnknownSourceError as e:
        raise HTTPException(status_code=422, detail=str(e))
    days = await get_aggregation_service().rebuild(db, region_id, energy_source.id)
    return {"region_id": region_id, "source": energy_source.source_code, "days": days}
