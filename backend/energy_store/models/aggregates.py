"""Derived rollups: daily, monthly, and per-zone regional summaries."""

import datetime
from typing import Optional

from sqlalchemy import Date, Float, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from energy_store.models.base import Base


class DailyAggregate(Base):
    __tablename__ = "energy_daily_aggregates"

    date: Mapped[datetime.date] = mapped_column(Date, primary_key=True)
    region_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("regions.id"), primary_key=True
    )
    source_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("energy_sources.id"), primary_key=True
    )
    avg_value: Mapped[float] = mapped_column(Float, nullable=False)
    min_value: Mapped[float] = mapped_column(Float, nullable=False)
    max_value: Mapped[float] = mapped_column(Float, nullable=False)
    stddev_value: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    sample_count: Mapped[int] = mapped_column(Integer, nullable=False)


class MonthlyAggregate(Base):
    __tablename__ = "energy_monthly_aggregates"

    year_month: Mapped[str] = mapped_column(String(7), primary_key=True)  # YYYY-MM
    region_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("regions.id"), primary_key=True
    )
    source_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("energy_sources.id"), primary_key=True
    )
    avg_value: Mapped[float] = mapped_column(Float, nullable=False)
    trend: Mapped[Optional[float]] = mapped_column(Float, nullable=True)  # month-over-month
    percentile_25: Mapped[float] = mapped_column(Float, nullable=False)
    percentile_50: Mapped[float] = mapped_column(Float, nullable=False)
    percentile_75: Mapped[float] = mapped_column(Float, nullable=False)
    sample_count: Mapped[int] = mapped_column(Integer, nullable=False)


class RegionalSummary(Base):
    __tablename__ = "regional_summaries"

    date: Mapped[datetime.date] = mapped_column(Date, primary_key=True)
    zone: Mapped[str] = mapped_column(String(50), primary_key=True)
    source_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("energy_sources.id"), primary_key=True
    )
    avg_value: Mapped[float] = mapped_column(Float, nullable=False)
    region_count: Mapped[int] = mapped_column(Integer, nullable=False)
    best_region_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("regions.id"), nullable=True
    )
    worst_region_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("regions.id"), nullable=True
    )
