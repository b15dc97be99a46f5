"""Daily, monthly and regional rollups, recomputed from raw measurements."""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta, timezone

import numpy as np
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from energy_store.models.aggregates import DailyAggregate, MonthlyAggregate, RegionalSummary
from energy_store.models.measurement import Measurement
from energy_store.models.region import Region

logger = logging.getLogger(__name__)

PRECISION = 4


def _day_bounds(day: date) -> tuple[datetime, datetime]:
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)


def _month_bounds(year_month: str) -> tuple[datetime, datetime]:
    year, month = (int(p) for p in year_month.split("-"))
    start = datetime(year, month, 1, tzinfo=timezone.utc)
    if month == 12:
        end = datetime(year + 1, 1, 1, tzinfo=timezone.utc)
    else:
        end = datetime(year, month + 1, 1, tzinfo=timezone.utc)
    return start, end


def year_month_of(ts: datetime) -> str:
    return ts.strftime("%Y-%m")


def previous_year_month(year_month: str) -> str:
    year, month = (int(p) for p in year_month.split("-"))
    if month == 1:
        return f"{year - 1}-12"
    return f"{year}-{month - 1:02d}"


def next_year_month(year_month: str) -> str:
    year, month = (int(p) for p in year_month.split("-"))
    if month == 12:
        return f"{year + 1}-01"
    return f"{year}-{month + 1:02d}"


def sample_stddev(values: list[float]) -> float | None:
    """Sample standard deviation; None for fewer than two values."""
    if len(values) < 2:
        return None
    return round(float(np.std(values, ddof=1)), PRECISION)


def percentiles(values: list[float]) -> tuple[float, float, float]:
    """25th/50th/75th percentiles with linear interpolation."""
    p25, p50, p75 = np.percentile(np.asarray(values, dtype=float), [25, 50, 75])
    return round(float(p25), PRECISION), round(float(p50), PRECISION), round(float(p75), PRECISION)


class AggregationService:
    """Recompute rollups for one key, replacing any prior row (idempotent)."""

    async def _values(
        self, db: AsyncSession, region_id: int, source_id: int, start: datetime, end: datetime
    ) -> list[float]:
        result = await db.execute(
            select(Measurement.value)
            .where(
                Measurement.region_id == region_id,
                Measurement.source_id == source_id,
                Measurement.time >= start,
                Measurement.time < end,
            )
            .order_by(Measurement.time)
        )
        return [float(v) for v in result.scalars().all()]

    async def refresh_daily(
        self, db: AsyncSession, day: date, region_id: int, source_id: int
    ) -> DailyAggregate | None:
        """Recompute the daily aggregate for (day, region, source)."""
        start, end = _day_bounds(day)
        values = await self._values(db, region_id, source_id, start, end)
        existing = await db.get(DailyAggregate, (day, region_id, source_id))

        if not values:
            if existing is not None:
                await db.delete(existing)
            return None

        fields = {
            "avg_value": round(sum(values) / len(values), PRECISION),
            "min_value": round(min(values), PRECISION),
            "max_value": round(max(values), PRECISION),
            "stddev_value": sample_stddev(values),
            "sample_count": len(values),
        }
        if existing:
            for key, val in fields.items():
                setattr(existing, key, val)
            daily = existing
        else:
            daily = DailyAggregate(date=day, region_id=region_id, source_id=source_id, **fields)
            db.add(daily)
        await db.flush()
        return daily

    async def refresh_monthly(
        self, db: AsyncSession, year_month: str, region_id: int, source_id: int
    ) -> MonthlyAggregate | None:
        """Recompute the monthly aggregate incl. percentiles and month-over-month trend."""
        start, end = _month_bounds(year_month)
        values = await self._values(db, region_id, source_id, start, end)
        existing = await db.get(MonthlyAggregate, (year_month, region_id, source_id))

        if not values:
            if existing is not None:
                await db.delete(existing)
            return None

        avg = round(sum(values) / len(values), PRECISION)
        previous = await db.get(
            MonthlyAggregate, (previous_year_month(year_month), region_id, source_id)
        )
        trend = round(avg - previous.avg_value, PRECISION) if previous else None
        p25, p50, p75 = percentiles(values)

        fields = {
            "avg_value": avg,
            "trend": trend,
            "percentile_25": p25,
            "percentile_50": p50,
            "percentile_75": p75,
            "sample_count": len(values),
        }
        if existing:
            for key, val in fields.items():
                setattr(existing, key, val)
            monthly = existing
        else:
            monthly = MonthlyAggregate(
                year_month=year_month, region_id=region_id, source_id=source_id, **fields
            )
            db.add(monthly)
        await db.flush()
        return monthly

    async def refresh_regional(
        self, db: AsyncSession, day: date, zone: str, source_id: int
    ) -> RegionalSummary | None:
        """Summarise a zone's daily averages: mean, best and worst region."""
        result = await db.execute(
            select(DailyAggregate.region_id, DailyAggregate.avg_value)
            .join(Region, Region.id == DailyAggregate.region_id)
            .where(
                DailyAggregate.date == day,
                DailyAggregate.source_id == source_id,
                Region.zone == zone,
            )
            .order_by(DailyAggregate.avg_value.desc(), DailyAggregate.region_id)
        )
        rows = result.all()
        existing = await db.get(RegionalSummary, (day, zone, source_id))

        if not rows:
            if existing is not None:
                await db.delete(existing)
            return None

        averages = [avg for _, avg in rows]
        fields = {
            "avg_value": round(sum(averages) / len(averages), PRECISION),
            "region_count": len(rows),
            "best_region_id": rows[0][0],
            "worst_region_id": rows[-1][0],
        }
        if existing:
            for key, val in fields.items():
                setattr(existing, key, val)
            summary = existing
        else:
            summary = RegionalSummary(date=day, zone=zone, source_id=source_id, **fields)
            db.add(summary)
        await db.flush()
        return summary

    async def refresh_for_measurement(self, db: AsyncSession, measurement: Measurement) -> None:
        """Bring daily and monthly rollups in line with a just-written measurement."""
        ts = measurement.time
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        ts = ts.astimezone(timezone.utc)
        await self.refresh_daily(db, ts.date(), measurement.region_id, measurement.source_id)
        monthly = await self.refresh_monthly(
            db, year_month_of(ts), measurement.region_id, measurement.source_id
        )

        # A backfilled month shifts the following month's trend
        following = await db.get(
            MonthlyAggregate,
            (next_year_month(year_month_of(ts)), measurement.region_id, measurement.source_id),
        )
        if following is not None and monthly is not None:
            following.trend = round(following.avg_value - monthly.avg_value, PRECISION)
            await db.flush()

    async def rebuild(self, db: AsyncSession, region_id: int, source_id: int) -> int:
        """Recompute every daily and monthly rollup of one region/source. Returns days."""
        result = await db.execute(
            select(func.min(Measurement.time), func.max(Measurement.time)).where(
                Measurement.region_id == region_id, Measurement.source_id == source_id
            )
        )
        first, last = result.one()
        if first is None:
            return 0

        day, last_day = first.date(), last.date()
        days = 0
        months: list[str] = []
        while day <= last_day:
            if await self.refresh_daily(db, day, region_id, source_id):
                days += 1
            ym = day.strftime("%Y-%m")
            if ym not in months:
                months.append(ym)
            day += timedelta(days=1)
        # Chronological so each month's trend sees the refreshed previous month
        for ym in months:
            await self.refresh_monthly(db, ym, region_id, source_id)

        await db.commit()
        logger.info(
            "Rebuilt %d daily / %d monthly aggregates for region=%d source=%d",
            days, len(months), region_id, source_id,
        )
        return days
