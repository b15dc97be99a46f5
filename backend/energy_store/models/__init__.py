"""SQLAlchemy ORM models for the energy store."""

from energy_store.models.base import Base
from energy_store.models.region import Region
from energy_store.models.energy_source import EnergySource, SourceCode
from energy_store.models.measurement import Measurement
from energy_store.models.aggregates import DailyAggregate, MonthlyAggregate, RegionalSummary
from energy_store.models.alerts import AlertEvent, AlertRule, AlertStatus
from energy_store.models.quality_log import DataQualityLog
from energy_store.models.access_log import ApiAccessLog

__all__ = [
    "Base",
    "Region",
    "EnergySource",
    "SourceCode",
    "Measurement",
    "DailyAggregate",
    "MonthlyAggregate",
    "RegionalSummary",
    "AlertRule",
    "AlertEvent",
    "AlertStatus",
    "DataQualityLog",
    "ApiAccessLog",
]
