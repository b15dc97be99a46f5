"""Region and energy source schemas."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class RegionCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    code: str | None = None
    zone: str | None = None
    capital: str | None = None
    population: int | None = None
    area_km2: float | None = None
    geometry: dict[str, Any] | None = None
    attributes: dict[str, Any] | None = None


class RegionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    name: str
    zone: str | None = None
    capital: str | None = None
    population: int | None = None
    area_km2: float | None = None
    geometry: dict[str, Any] | None = None
    attributes: dict[str, Any] | None = None


class EnergySourceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    source_code: str
    name: str
    description: str | None = None
    unit: str | None = None
    min_value: float | None = None
    max_value: float | None = None
    is_active: bool
