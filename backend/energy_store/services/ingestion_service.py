"""GeoJSON batch ingestion: upsert, aggregate refresh, alerting, quality log.

One batch is one unit of work: measurements, their aggregates, any alert
events and the quality-log entry commit together or not at all. A failed
batch still leaves a single ``error`` row in the quality log.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from energy_store.config import settings
from energy_store.errors import MalformedBatchError, UnknownSourceError
from energy_store.models.energy_source import EnergySource, SourceCode
from energy_store.models.measurement import Measurement
from energy_store.models.quality_log import DataQualityLog
from energy_store.schemas.ingest import (
    NORM_FIELDS,
    FeatureProperties,
    IngestBatch,
    IngestResult,
    RejectedFeature,
)
from energy_store.services.aggregation_service import AggregationService
from energy_store.services.alert_service import AlertService
from energy_store.services.region_service import RegionService

logger = logging.getLogger(__name__)

CHECK_TYPE = "real_time_update"


@dataclass
class _ValidFeature:
    index: int
    properties: FeatureProperties
    geometry: dict[str, Any] | None


def _as_utc(ts: datetime | None) -> datetime:
    if ts is None:
        return datetime.now(timezone.utc)
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def _describe(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "properties"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


class IngestionService:
    """Turns one FeatureCollection into per-region, per-source measurements."""

    def __init__(
        self,
        region_service: RegionService | None = None,
        aggregation_service: AggregationService | None = None,
        alert_service: AlertService | None = None,
    ):
        self._regions = region_service or RegionService()
        self._aggregation = aggregation_service or AggregationService()
        self._alerts = alert_service or AlertService()

    def validate(
        self, batch: IngestBatch, sources: dict[str, EnergySource]
    ) -> tuple[list[_ValidFeature], list[RejectedFeature]]:
        """Split features into valid ones and rejections. Performs no writes."""
        valid: list[_ValidFeature] = []
        rejected: list[RejectedFeature] = []

        for index, feature in enumerate(batch.features):
            name = feature.properties.get("ADM1_EN")
            try:
                props = FeatureProperties.model_validate(feature.properties)
            except ValidationError as e:
                rejected.append(RejectedFeature(
                    index=index,
                    region=name if isinstance(name, str) else None,
                    reason=_describe(e),
                ))
                continue

            reason = None
            for code in NORM_FIELDS:
                source = sources.get(code.value)
                if source is not None and not source.accepts(props.raw(code)):
                    reason = (
                        f"{code.value.lower()}_raw {props.raw(code)} outside "
                        f"[{source.min_value}, {source.max_value}]"
                    )
                    break
            if reason:
                rejected.append(RejectedFeature(index=index, region=props.region_name, reason=reason))
                continue

            valid.append(_ValidFeature(index=index, properties=props, geometry=feature.geometry))

        return valid, rejected

    async def ingest(self, db: AsyncSession, batch: IngestBatch) -> IngestResult:
        started = time.perf_counter()
        timestamp = _as_utc(batch.timestamp)
        data_source = batch.data_source or settings.default_data_source
        base_details = {
            "national_scores": batch.national_scores,
            "data_sources": batch.data_sources,
            "features_updated": batch.features_updated,
            "features_received": len(batch.features),
        }

        sources = await self._regions.sources_by_code(db)
        valid, rejected = self.validate(batch, sources)
        rejected_details = [r.model_dump() for r in rejected]

        if not valid:
            message = f"Batch rejected: none of {len(batch.features)} features is valid"
            await self._log_failure(
                db, timestamp, message, started, {**base_details, "rejected": rejected_details}
            )
            logger.error(message)
            raise MalformedBatchError(message, rejected_details)

        written = 0
        fired = 0
        touched: set[tuple[str, int]] = set()
        try:
            for item in valid:
                props = item.properties
                region = await self._regions.resolve(
                    db,
                    props.region_name,
                    zone=props.zone,
                    geometry=item.geometry,
                    auto_create=settings.auto_create_regions,
                )
                for code in SourceCode:
                    source = sources.get(code.value)
                    if source is None:
                        raise UnknownSourceError(code.value)

                    measurement, changed = await self._upsert(
                        db, timestamp, region.id, source, props, code, data_source
                    )
                    written += 1
                    await self._aggregation.refresh_for_measurement(db, measurement)
                    if changed:
                        fired += len(await self._alerts.evaluate(db, measurement))
                    if region.zone:
                        touched.add((region.zone, source.id))

            for zone, source_id in sorted(touched):
                await self._aggregation.refresh_regional(db, timestamp.date(), zone, source_id)

            status = "warning" if rejected else "success"
            log = DataQualityLog(
                check_time=timestamp,
                check_type=CHECK_TYPE,
                status=status,
                message=(
                    f"Ingested {len(valid)} features ({written} measurements, "
                    f"{fired} alerts), rejected {len(rejected)}"
                ),
                records_processed=len(valid),
                processing_time_ms=int((time.perf_counter() - started) * 1000),
                details={**base_details, "rejected": rejected_details, "alerts_fired": fired},
            )
            db.add(log)
            await db.commit()
        except Exception as e:
            await db.rollback()
            logger.error("Ingestion failed, batch rolled back: %s", e)
            await self._log_failure(
                db, timestamp, f"{type(e).__name__}: {e}", started,
                {**base_details, "rejected": rejected_details},
            )
            raise

        logger.info(
            "Ingested %d features (%d measurements, %d alerts) at %s",
            len(valid), written, fired, timestamp.isoformat(),
        )
        recent = await self._alerts.count_recent_active(db)
        if recent:
            logger.warning(
                "%d active alerts in the last %d minutes",
                recent, settings.recent_alert_window_minutes,
            )

        return IngestResult(
            status=status,
            timestamp=timestamp,
            records_processed=len(valid),
            measurements_written=written,
            alerts_fired=fired,
            rejected=rejected,
            quality_log_id=log.id,
        )

    async def _upsert(
        self,
        db: AsyncSession,
        timestamp: datetime,
        region_id: int,
        source: EnergySource,
        props: FeatureProperties,
        code: SourceCode,
        data_source: str,
    ) -> tuple[Measurement, bool]:
        """Insert or overwrite the measurement at (time, region, source).

        Returns the row and whether its value changed (True for new rows).
        """
        value = props.raw(code)
        normalized = props.normalized(code)
        details = {
            "classification": props.classification(code),
            "confidence": props.confidence_level,
            "recommended": props.recommended_energy,
            "last_updated": props.last_updated,
        }
        raw_value = {"field": NORM_FIELDS[code], "value": value}

        result = await db.execute(
            select(Measurement).where(
                Measurement.time == timestamp,
                Measurement.region_id == region_id,
                Measurement.source_id == source.id,
            )
        )
        measurement = result.scalar_one_or_none()

        if measurement:
            changed = measurement.value != value
            measurement.value = value
            measurement.normalized_value = normalized
            measurement.confidence = props.confidence()
            measurement.data_source = data_source
            measurement.raw_value = raw_value
            measurement.details = details
        else:
            changed = True
            measurement = Measurement(
                time=timestamp,
                region_id=region_id,
                source_id=source.id,
                value=value,
                normalized_value=normalized,
                confidence=props.confidence(),
                data_source=data_source,
                raw_value=raw_value,
                details=details,
            )
            db.add(measurement)
        await db.flush()
        return measurement, changed

    async def _log_failure(
        self,
        db: AsyncSession,
        timestamp: datetime,
        message: str,
        started: float,
        details: dict[str, Any],
    ) -> None:
        """Record a failed batch in its own transaction."""
        try:
            db.add(DataQualityLog(
                check_time=timestamp,
                check_type=CHECK_TYPE,
                status="error",
                message=message,
                records_processed=0,
                processing_time_ms=int((time.perf_counter() - started) * 1000),
                details=details,
            ))
            await db.commit()
        except Exception as e:
            await db.rollback()
            logger.error("Could not write quality log entry: %s", e)
