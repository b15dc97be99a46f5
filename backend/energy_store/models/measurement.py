"""Time-series measurement model, one row per (time, region, source)."""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, DateTime, Float, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from energy_store.models.base import Base


class Measurement(Base):
    __tablename__ = "energy_measurements"
    __table_args__ = (
        Index("idx_energy_measurements_region_source_time", "region_id", "source_id", "time"),
    )

    time: Mapped[datetime] = mapped_column(DateTime(timezone=True), primary_key=True)
    region_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("regions.id"), primary_key=True
    )
    source_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("energy_sources.id"), primary_key=True
    )
    value: Mapped[float] = mapped_column(Float, nullable=False)
    normalized_value: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    confidence: Mapped[float] = mapped_column(Float, default=1.0)
    data_source: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    raw_value: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)
    # "metadata" is reserved on declarative classes
    details: Mapped[Optional[dict[str, Any]]] = mapped_column("metadata", JSON, nullable=True)

    def __repr__(self) -> str:
        return (
            f"<Measurement({self.time}, region={self.region_id}, "
            f"source={self.source_id}, value={self.value})>"
        )
