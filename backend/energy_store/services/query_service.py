"""Read views: current state per region/source, rollups, regional summary."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from energy_store.models.aggregates import DailyAggregate, MonthlyAggregate, RegionalSummary
from energy_store.models.energy_source import EnergySource
from energy_store.models.measurement import Measurement
from energy_store.models.quality_log import DataQualityLog
from energy_store.models.region import Region

logger = logging.getLogger(__name__)


def _utc(ts: datetime) -> datetime:
    """SQLite hands back naive timestamps; they are stored as UTC."""
    return ts.replace(tzinfo=timezone.utc) if ts.tzinfo is None else ts


class QueryService:
    """Queries backing the HTTP read endpoints."""

    async def current_state(
        self, db: AsyncSession, region: str | None = None, source: str | None = None
    ) -> list[dict[str, Any]]:
        """Latest measurement for every (region, source)."""
        latest = (
            select(
                Measurement.region_id,
                Measurement.source_id,
                func.max(Measurement.time).label("max_time"),
            )
            .group_by(Measurement.region_id, Measurement.source_id)
            .subquery()
        )
        stmt = (
            select(Measurement, Region, EnergySource)
            .join(
                latest,
                and_(
                    Measurement.region_id == latest.c.region_id,
                    Measurement.source_id == latest.c.source_id,
                    Measurement.time == latest.c.max_time,
                ),
            )
            .join(Region, Region.id == Measurement.region_id)
            .join(EnergySource, EnergySource.id == Measurement.source_id)
            .order_by(Region.name, EnergySource.id)
        )
        if region:
            stmt = stmt.where(func.lower(Region.name) == region.lower())
        if source:
            stmt = stmt.where(EnergySource.source_code == source.upper())

        result = await db.execute(stmt)
        return [
            {
                "region_id": r.id,
                "region_name": r.name,
                "zone": r.zone,
                "source_code": s.source_code,
                "energy_source": s.name,
                "value": m.value,
                "normalized_value": m.normalized_value,
                "last_updated": _utc(m.time),
                "data_source": m.data_source,
            }
            for m, r, s in result.all()
        ]

    async def daily_aggregates(
        self,
        db: AsyncSession,
        region_id: int | None = None,
        source: str | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> list[dict[str, Any]]:
        stmt = (
            select(DailyAggregate, EnergySource.source_code)
            .join(EnergySource, EnergySource.id == DailyAggregate.source_id)
            .order_by(DailyAggregate.date, DailyAggregate.region_id, DailyAggregate.source_id)
        )
        if region_id is not None:
            stmt = stmt.where(DailyAggregate.region_id == region_id)
        if source:
            stmt = stmt.where(EnergySource.source_code == source.upper())
        if start:
            stmt = stmt.where(DailyAggregate.date >= start)
        if end:
            stmt = stmt.where(DailyAggregate.date <= end)

        result = await db.execute(stmt)
        return [
            {
                "date": d.date,
                "region_id": d.region_id,
                "source_code": code,
                "avg_value": d.avg_value,
                "min_value": d.min_value,
                "max_value": d.max_value,
                "stddev_value": d.stddev_value,
                "sample_count": d.sample_count,
            }
            for d, code in result.all()
        ]

    async def monthly_aggregates(
        self, db: AsyncSession, region_id: int | None = None, source: str | None = None
    ) -> list[dict[str, Any]]:
        stmt = (
            select(MonthlyAggregate, EnergySource.source_code)
            .join(EnergySource, EnergySource.id == MonthlyAggregate.source_id)
            .order_by(
                MonthlyAggregate.year_month, MonthlyAggregate.region_id, MonthlyAggregate.source_id
            )
        )
        if region_id is not None:
            stmt = stmt.where(MonthlyAggregate.region_id == region_id)
        if source:
            stmt = stmt.where(EnergySource.source_code == source.upper())

        result = await db.execute(stmt)
        return [
            {
                "year_month": m.year_month,
                "region_id": m.region_id,
                "source_code": code,
                "avg_value": m.avg_value,
                "trend": m.trend,
                "percentile_25": m.percentile_25,
                "percentile_50": m.percentile_50,
                "percentile_75": m.percentile_75,
                "sample_count": m.sample_count,
            }
            for m, code in result.all()
        ]

    async def regional_summary(
        self, db: AsyncSession, zone: str | None = None, source: str | None = None
    ) -> list[dict[str, Any]]:
        """Latest summary per (zone, source) with best/worst region names."""
        latest = (
            select(
                RegionalSummary.zone,
                RegionalSummary.source_id,
                func.max(RegionalSummary.date).label("max_date"),
            )
            .group_by(RegionalSummary.zone, RegionalSummary.source_id)
            .subquery()
        )
        best = aliased(Region)
        worst = aliased(Region)
        stmt = (
            select(RegionalSummary, EnergySource.name, best.name, worst.name)
            .join(
                latest,
                and_(
                    RegionalSummary.zone == latest.c.zone,
                    RegionalSummary.source_id == latest.c.source_id,
                    RegionalSummary.date == latest.c.max_date,
                ),
            )
            .join(EnergySource, EnergySource.id == RegionalSummary.source_id)
            .outerjoin(best, best.id == RegionalSummary.best_region_id)
            .outerjoin(worst, worst.id == RegionalSummary.worst_region_id)
            .order_by(RegionalSummary.date.desc(), RegionalSummary.zone, EnergySource.name)
        )
        if zone:
            stmt = stmt.where(RegionalSummary.zone == zone)
        if source:
            stmt = stmt.where(EnergySource.source_code == source.upper())

        result = await db.execute(stmt)
        return [
            {
                "date": rs.date,
                "zone": rs.zone,
                "energy_source": source_name,
                "avg_value": rs.avg_value,
                "region_count": rs.region_count,
                "best_region": best_name,
                "worst_region": worst_name,
            }
            for rs, source_name, best_name, worst_name in result.all()
        ]

    async def quality_log(self, db: AsyncSession, limit: int = 50) -> list[DataQualityLog]:
        result = await db.execute(
            select(DataQualityLog).order_by(DataQualityLog.id.desc()).limit(limit)
        )
        return list(result.scalars().all())
