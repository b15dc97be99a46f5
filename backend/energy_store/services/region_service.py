"""Region and energy source registry."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from energy_store.errors import UnknownRegionError, UnknownSourceError
from energy_store.models.energy_source import EnergySource
from energy_store.models.region import Region
from energy_store.seeds import region_code

logger = logging.getLogger(__name__)


class RegionService:
    """Lookups by name/code, registration of new regions."""

    async def get_by_name(self, db: AsyncSession, name: str) -> Region | None:
        result = await db.execute(
            select(Region).where(func.lower(Region.name) == name.strip().lower())
        )
        return result.scalar_one_or_none()

    async def resolve(
        self,
        db: AsyncSession,
        name: str,
        zone: str | None = None,
        geometry: dict[str, Any] | None = None,
        auto_create: bool = False,
    ) -> Region:
        """Find a region by name, optionally registering it when unknown."""
        region = await self.get_by_name(db, name)
        if region is None:
            if not auto_create:
                raise UnknownRegionError(name)
            region = Region(
                code=region_code(name),
                name=name.strip(),
                zone=zone or "Unknown",
                geometry=geometry,
            )
            db.add(region)
            await db.flush()
            logger.info("Registered new region: %s (%s)", region.name, region.zone)
        elif geometry and region.geometry is None:
            region.geometry = geometry
        return region

    async def create(self, db: AsyncSession, data: dict[str, Any]) -> Region:
        region = Region(
            code=data.get("code") or region_code(data["name"]),
            name=data["name"].strip(),
            zone=data.get("zone"),
            capital=data.get("capital"),
            population=data.get("population"),
            area_km2=data.get("area_km2"),
            geometry=data.get("geometry"),
            attributes=data.get("attributes"),
        )
        db.add(region)
        await db.commit()
        await db.refresh(region)
        return region

    async def list_regions(self, db: AsyncSession, zone: str | None = None) -> list[Region]:
        stmt = select(Region).order_by(Region.name)
        if zone:
            stmt = stmt.where(Region.zone == zone)
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def sources_by_code(self, db: AsyncSession) -> dict[str, EnergySource]:
        result = await db.execute(select(EnergySource).where(EnergySource.is_active == 1))
        return {s.source_code: s for s in result.scalars().all()}

    async def get_source(self, db: AsyncSession, code: str) -> EnergySource:
        result = await db.execute(
            select(EnergySource).where(EnergySource.source_code == code.upper())
        )
        source = result.scalar_one_or_none()
        if source is None:
            raise UnknownSourceError(code)
        return source

    async def list_sources(self, db: AsyncSession) -> list[EnergySource]:
        result = await db.execute(select(EnergySource).order_by(EnergySource.id))
        return list(result.scalars().all())
