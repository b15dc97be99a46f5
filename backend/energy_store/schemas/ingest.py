"""GeoJSON ingestion batch and ingestion result schemas."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from energy_store.models.energy_source import SourceCode

# Property name carrying each source's normalized score
NORM_FIELDS: dict[SourceCode, str] = {
    SourceCode.SOLAR: "solar_norm",
    SourceCode.WIND: "wind_norm",
    SourceCode.HYDRO: "hydro_norm",
    SourceCode.COMPOSITE: "composite_norm",
}


class FeatureProperties(BaseModel):
    """Per-region properties of one feature; unknown keys are kept."""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    region_name: str = Field(alias="ADM1_EN", min_length=1)
    solar_norm: float = Field(ge=0.0, le=1.0)
    wind_norm: float = Field(ge=0.0, le=1.0)
    hydro_norm: float = Field(ge=0.0, le=1.0)
    composite_norm: float = Field(ge=0.0, le=1.0)
    solar_raw: float | None = None
    wind_raw: float | None = None
    hydro_raw: float | None = None
    composite_raw: float | None = None
    zone: str | None = Field(default=None, alias="region")
    confidence_level: Any = None
    recommended_energy: str | None = None
    last_updated: str | None = None

    @field_validator("region_name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        return value.strip()

    def normalized(self, source: SourceCode) -> float:
        return getattr(self, NORM_FIELDS[source])

    def raw(self, source: SourceCode) -> float:
        """Raw ``<source>_raw`` value, defaulting to the normalized score."""
        value = getattr(self, f"{source.value.lower()}_raw")
        return value if value is not None else self.normalized(source)

    def classification(self, source: SourceCode) -> Any:
        return (self.model_extra or {}).get(f"{source.value.lower()}_class")

    def confidence(self) -> float:
        """Numeric confidence in [0,1]; textual levels count as full confidence."""
        if isinstance(self.confidence_level, (int, float)) and 0 <= self.confidence_level <= 1:
            return float(self.confidence_level)
        return 1.0


class Feature(BaseModel):
    type: Literal["Feature"] = "Feature"
    geometry: dict[str, Any] | None = None
    # Validated per feature by the ingestion service
    properties: dict[str, Any] = {}


class IngestBatch(BaseModel):
    """One GeoJSON FeatureCollection, one feature per region."""
    model_config = ConfigDict(extra="allow")

    type: Literal["FeatureCollection"] = "FeatureCollection"
    features: list[Feature]
    timestamp: datetime | None = None
    data_source: str | None = None
    national_scores: dict[str, Any] | None = None
    data_sources: Any = None
    features_updated: Any = None


class RejectedFeature(BaseModel):
    index: int
    region: str | None = None
    reason: str


class IngestResult(BaseModel):
    status: str  # success | warning
    timestamp: datetime
    records_processed: int
    measurements_written: int
    alerts_fired: int
    rejected: list[RejectedFeature] = []
    quality_log_id: int | None = None
