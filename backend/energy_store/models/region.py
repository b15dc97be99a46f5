"""Administrative region (state) model."""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, DateTime, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from energy_store.models.base import Base


class Region(Base):
    __tablename__ = "regions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(40), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    zone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, index=True)
    capital: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    population: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    area_km2: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    # Boundary stored as a GeoJSON geometry object
    geometry: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)
    attributes: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<Region(id={self.id}, name='{self.name}', zone='{self.zone}')>"
