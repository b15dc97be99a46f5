"""Read-side schemas for current state, aggregates, regional summaries."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict


class CurrentMeasurement(BaseModel):
    """Latest measurement for one region/source."""
    region_id: int
    region_name: str
    zone: str | None = None
    source_code: str
    energy_source: str
    value: float
    normalized_value: float | None = None
    last_updated: datetime
    data_source: str | None = None


class DailyAggregateOut(BaseModel):
    date: date
    region_id: int
    source_code: str
    avg_value: float
    min_value: float
    max_value: float
    stddev_value: float | None = None
    sample_count: int


class MonthlyAggregateOut(BaseModel):
    year_month: str
    region_id: int
    source_code: str
    avg_value: float
    trend: float | None = None
    percentile_25: float
    percentile_50: float
    percentile_75: float
    sample_count: int


class RegionalSummaryOut(BaseModel):
    date: date
    zone: str
    energy_source: str
    avg_value: float
    region_count: int
    best_region: str | None = None
    worst_region: str | None = None


class QualityLogOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    check_time: datetime
    check_type: str
    status: str
    message: str | None = None
    records_processed: int
    processing_time_ms: int | None = None
    details: dict | None = None
