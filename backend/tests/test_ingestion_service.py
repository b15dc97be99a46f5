"""Tests for IngestionService: upsert, aggregates, rejection and rollback."""

from datetime import date, datetime, timezone

import pytest
import pytest_asyncio
from sqlalchemy import func, select

from energy_store.config import settings
from energy_store.errors import MalformedBatchError, UnknownRegionError
from energy_store.models.aggregates import DailyAggregate, MonthlyAggregate, RegionalSummary
from energy_store.models.alerts import AlertEvent
from energy_store.models.energy_source import EnergySource
from energy_store.models.measurement import Measurement
from energy_store.models.quality_log import DataQualityLog
from energy_store.models.region import Region
from energy_store.schemas.ingest import IngestBatch
from energy_store.services.alert_service import AlertService
from energy_store.services.ingestion_service import IngestionService
from energy_store.services.query_service import QueryService

T1 = datetime(2026, 3, 1, 6, 0, tzinfo=timezone.utc)
T2 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
T3 = datetime(2026, 3, 1, 18, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def ingestion():
    return IngestionService(alert_service=AlertService(suppression_minutes=0))


@pytest_asyncio.fixture
async def ids(db_session):
    """Region and source ids by name/code."""
    regions = (await db_session.execute(select(Region.name, Region.id))).all()
    sources = (await db_session.execute(select(EnergySource.source_code, EnergySource.id))).all()
    return {**dict(regions), **dict(sources)}


async def _count(db, model) -> int:
    return (await db.execute(select(func.count()).select_from(model))).scalar()


@pytest.mark.asyncio
async def test_ingest_writes_one_measurement_per_source(db_session, ingestion, feature, make_batch):
    batch = IngestBatch.model_validate(
        make_batch([feature("Lagos", 0.78), feature("Kano", 0.91)], T1)
    )

    result = await ingestion.ingest(db_session, batch)

    assert result.status == "success"
    assert result.records_processed == 2
    assert result.measurements_written == 8
    assert result.rejected == []
    assert await _count(db_session, Measurement) == 8
    assert await _count(db_session, DailyAggregate) == 8
    assert await _count(db_session, MonthlyAggregate) == 8

    log = await db_session.get(DataQualityLog, result.quality_log_id)
    assert log.status == "success"
    assert log.check_type == "real_time_update"
    assert log.records_processed == 2
    assert log.details["national_scores"] == {"solar": 0.71}


@pytest.mark.asyncio
async def test_measurement_keeps_metadata(db_session, ingestion, feature, make_batch, ids):
    batch = IngestBatch.model_validate(make_batch([feature("Lagos", 0.78, solar_raw=5.6)], T1))
    await ingestion.ingest(db_session, batch)

    m = (await db_session.execute(
        select(Measurement).where(
            Measurement.region_id == ids["Lagos"], Measurement.source_id == ids["SOLAR"]
        )
    )).scalar_one()
    assert m.value == 5.6
    assert m.normalized_value == 0.78
    assert m.data_source == settings.default_data_source
    assert m.details["classification"] == "High"
    assert m.details["recommended"] == "Solar"


@pytest.mark.asyncio
async def test_latest_value_per_key(db_session, ingestion, feature, make_batch):
    for ts, value in ((T1, 0.5), (T3, 0.7), (T2, 0.6)):
        batch = IngestBatch.model_validate(make_batch([feature("Lagos", value)], ts))
        await ingestion.ingest(db_session, batch)

    rows = await QueryService().current_state(db_session, region="Lagos", source="SOLAR")
    assert len(rows) == 1
    assert rows[0]["value"] == 0.7
    assert rows[0]["last_updated"] == T3


@pytest.mark.asyncio
async def test_same_key_overwrites_in_place(db_session, ingestion, feature, make_batch, ids):
    await ingestion.ingest(db_session, IngestBatch.model_validate(make_batch([feature("Lagos", 0.5)], T1)))
    await ingestion.ingest(db_session, IngestBatch.model_validate(make_batch([feature("Lagos", 0.9)], T1)))

    values = (await db_session.execute(
        select(Measurement.value).where(
            Measurement.region_id == ids["Lagos"], Measurement.source_id == ids["SOLAR"]
        )
    )).scalars().all()
    assert values == [0.9]

    daily = await db_session.get(DailyAggregate, (date(2026, 3, 1), ids["Lagos"], ids["SOLAR"]))
    assert daily.avg_value == 0.9
    assert daily.sample_count == 1


@pytest.mark.asyncio
async def test_daily_aggregate_statistics(db_session, ingestion, feature, make_batch, ids):
    for ts, value in ((T1, 0.2), (T2, 0.4), (T3, 0.6)):
        await ingestion.ingest(db_session, IngestBatch.model_validate(make_batch([feature("Lagos", value)], ts)))

    daily = await db_session.get(DailyAggregate, (date(2026, 3, 1), ids["Lagos"], ids["SOLAR"]))
    assert daily.avg_value == 0.4
    assert daily.min_value == 0.2
    assert daily.max_value == 0.6
    assert daily.stddev_value == pytest.approx(0.2)
    assert daily.sample_count == 3


@pytest.mark.asyncio
async def test_reingest_identical_batch_is_idempotent(db_session, ingestion, feature, make_batch, ids):
    for ts, value in ((T1, 0.2), (T2, 0.4)):
        await ingestion.ingest(db_session, IngestBatch.model_validate(make_batch([feature("Lagos", value)], ts)))
    key = (date(2026, 3, 1), ids["Lagos"], ids["SOLAR"])
    before = await db_session.get(DailyAggregate, key)
    snapshot = (before.avg_value, before.min_value, before.max_value, before.stddev_value, before.sample_count)

    await ingestion.ingest(db_session, IngestBatch.model_validate(make_batch([feature("Lagos", 0.4)], T2)))

    after = await db_session.get(DailyAggregate, key)
    assert (after.avg_value, after.min_value, after.max_value, after.stddev_value, after.sample_count) == snapshot
    assert await _count(db_session, Measurement) == 8


@pytest.mark.asyncio
async def test_monthly_percentiles_and_trend(db_session, ingestion, feature, make_batch, ids):
    february = datetime(2026, 2, 10, tzinfo=timezone.utc)
    await ingestion.ingest(db_session, IngestBatch.model_validate(make_batch([feature("Lagos", 0.5)], february)))
    for ts, value in ((T1, 0.2), (T2, 0.4), (T3, 0.6)):
        await ingestion.ingest(db_session, IngestBatch.model_validate(make_batch([feature("Lagos", value)], ts)))

    march = await db_session.get(MonthlyAggregate, ("2026-03", ids["Lagos"], ids["SOLAR"]))
    assert march.avg_value == 0.4
    assert march.trend == pytest.approx(-0.1)
    assert march.percentile_25 == pytest.approx(0.3)
    assert march.percentile_50 == pytest.approx(0.4)
    assert march.percentile_75 == pytest.approx(0.5)
    assert march.sample_count == 3

    feb = await db_session.get(MonthlyAggregate, ("2026-02", ids["Lagos"], ids["SOLAR"]))
    assert feb.trend is None


@pytest.mark.asyncio
async def test_regional_summary_best_and_worst(db_session, ingestion, feature, make_batch, ids):
    batch = IngestBatch.model_validate(make_batch(
        [feature("Lagos", 0.8), feature("Ogun", 0.6), feature("Oyo", 0.7), feature("Kano", 0.9)], T1
    ))
    await ingestion.ingest(db_session, batch)

    summary = await db_session.get(RegionalSummary, (date(2026, 3, 1), "South West", ids["SOLAR"]))
    assert summary.avg_value == 0.7
    assert summary.region_count == 3
    assert summary.best_region_id == ids["Lagos"]
    assert summary.worst_region_id == ids["Ogun"]

    rows = await QueryService().regional_summary(db_session, zone="South West", source="SOLAR")
    assert rows[0]["best_region"] == "Lagos"
    assert rows[0]["worst_region"] == "Ogun"


@pytest.mark.asyncio
async def test_malformed_feature_rejected_before_write(db_session, ingestion, feature, make_batch):
    broken = feature("Kano", 0.5)
    del broken["properties"]["wind_norm"]
    batch = IngestBatch.model_validate(make_batch([feature("Lagos", 0.78), broken], T1))

    result = await ingestion.ingest(db_session, batch)

    assert result.status == "warning"
    assert result.records_processed == 1
    assert len(result.rejected) == 1
    assert result.rejected[0].index == 1
    assert result.rejected[0].region == "Kano"
    assert "wind_norm" in result.rejected[0].reason
    assert await _count(db_session, Measurement) == 4

    log = await db_session.get(DataQualityLog, result.quality_log_id)
    assert log.status == "warning"


@pytest.mark.asyncio
async def test_out_of_range_values_rejected(db_session, ingestion, feature, make_batch):
    batch = IngestBatch.model_validate(make_batch(
        [feature("Lagos", 1.4), feature("Kano", 0.5, solar_raw=50.0), feature("Oyo", 0.5)], T1
    ))

    result = await ingestion.ingest(db_session, batch)

    assert [r.region for r in result.rejected] == ["Lagos", "Kano"]
    assert "solar_raw" in result.rejected[1].reason
    assert await _count(db_session, Measurement) == 4


@pytest.mark.asyncio
async def test_fully_malformed_batch_raises_and_logs(db_session, ingestion, feature, make_batch):
    batch = IngestBatch.model_validate(make_batch([feature("Lagos", None)], T1))

    with pytest.raises(MalformedBatchError) as exc_info:
        await ingestion.ingest(db_session, batch)

    assert len(exc_info.value.rejected) == 1
    assert await _count(db_session, Measurement) == 0
    logs = (await db_session.execute(select(DataQualityLog))).scalars().all()
    assert [log.status for log in logs] == ["error"]


@pytest.mark.asyncio
async def test_unknown_region_rolls_back_whole_batch(db_session, ingestion, feature, make_batch):
    await AlertService().create_rule(db_session, {
        "name": "High solar",
        "source_code": "SOLAR",
        "condition_params": {"threshold": 0.5},
    })
    batch = IngestBatch.model_validate(make_batch([feature("Lagos", 0.78), feature("Atlantis", 0.9)], T1))

    with pytest.raises(UnknownRegionError):
        await ingestion.ingest(db_session, batch)

    assert await _count(db_session, Measurement) == 0
    assert await _count(db_session, DailyAggregate) == 0
    assert await _count(db_session, AlertEvent) == 0
    logs = (await db_session.execute(select(DataQualityLog))).scalars().all()
    assert len(logs) == 1
    assert logs[0].status == "error"
    assert "Atlantis" in logs[0].message


@pytest.mark.asyncio
async def test_auto_create_regions(db_session, ingestion, feature, make_batch, monkeypatch):
    monkeypatch.setattr(settings, "auto_create_regions", True)
    batch = IngestBatch.model_validate(
        make_batch([feature("Lagos Island", 0.6, region="South West")], T1)
    )

    result = await ingestion.ingest(db_session, batch)

    assert result.status == "success"
    region = (await db_session.execute(
        select(Region).where(Region.name == "Lagos Island")
    )).scalar_one()
    assert region.code == "LAGOS_ISLAND"
    assert region.zone == "South West"
    assert region.geometry["type"] == "Point"


@pytest.mark.asyncio
async def test_naive_timestamp_treated_as_utc(db_session, ingestion, feature, make_batch):
    batch = IngestBatch.model_validate(make_batch([feature("Lagos", 0.5)], datetime(2026, 3, 1, 23, 30)))

    result = await ingestion.ingest(db_session, batch)

    assert result.timestamp == datetime(2026, 3, 1, 23, 30, tzinfo=timezone.utc)
    rows = await QueryService().daily_aggregates(db_session, source="SOLAR")
    assert [r["date"] for r in rows] == [date(2026, 3, 1)]


@pytest.mark.asyncio
async def test_non_string_region_name_rejected(db_session, ingestion, feature, make_batch):
    batch = IngestBatch.model_validate(make_batch([feature("Lagos", 0.5), feature(123, 0.5)], T1))

    result = await ingestion.ingest(db_session, batch)

    assert result.status == "warning"
    assert result.rejected[0].index == 1
    assert result.rejected[0].region is None
    assert "ADM1_EN" in result.rejected[0].reason
    assert await _count(db_session, Measurement) == 4


@pytest.mark.asyncio
@pytest.mark.parametrize("raw", ["n/a", {"value": 5}, [5.6]])
async def test_non_numeric_raw_value_rejected(db_session, ingestion, feature, make_batch, raw):
    batch = IngestBatch.model_validate(
        make_batch([feature("Lagos", 0.5), feature("Kano", 0.5, solar_raw=raw)], T1)
    )

    result = await ingestion.ingest(db_session, batch)

    assert result.status == "warning"
    assert [r.region for r in result.rejected] == ["Kano"]
    assert "solar_raw" in result.rejected[0].reason
    assert await _count(db_session, Measurement) == 4
    logs = (await db_session.execute(select(DataQualityLog))).scalars().all()
    assert [log.status for log in logs] == ["warning"]


@pytest.mark.asyncio
async def test_backfilled_month_updates_following_trend(db_session, ingestion, feature, make_batch, ids):
    april = datetime(2026, 4, 5, tzinfo=timezone.utc)
    await ingestion.ingest(db_session, IngestBatch.model_validate(make_batch([feature("Lagos", 0.6)], april)))

    key = ("2026-04", ids["Lagos"], ids["SOLAR"])
    assert (await db_session.get(MonthlyAggregate, key)).trend is None

    await ingestion.ingest(db_session, IngestBatch.model_validate(make_batch([feature("Lagos", 0.2)], T1)))

    march = await db_session.get(MonthlyAggregate, ("2026-03", ids["Lagos"], ids["SOLAR"]))
    april_agg = await db_session.get(MonthlyAggregate, key)
    assert april_agg.trend == pytest.approx(april_agg.avg_value - march.avg_value)
    assert april_agg.trend == pytest.approx(0.4)
