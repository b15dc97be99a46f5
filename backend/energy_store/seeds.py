"""Reference data: energy sources and the states of Nigeria."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from energy_store.models.energy_source import EnergySource, SourceCode
from energy_store.models.region import Region

logger = logging.getLogger(__name__)

ENERGY_SOURCES: list[dict] = [
    {
        "source_code": SourceCode.SOLAR.value,
        "name": "Solar Energy",
        "description": "Solar radiation potential",
        "unit": "kWh/m²/day",
        "min_value": 0.0,
        "max_value": 12.0,
    },
    {
        "source_code": SourceCode.WIND.value,
        "name": "Wind Energy",
        "description": "Wind speed at 10m height",
        "unit": "m/s",
        "min_value": 0.0,
        "max_value": 40.0,
    },
    {
        "source_code": SourceCode.HYDRO.value,
        "name": "Hydro Energy",
        "description": "Hydropower potential",
        "unit": "index",
        "min_value": 0.0,
        "max_value": 1.0,
    },
    {
        "source_code": SourceCode.COMPOSITE.value,
        "name": "Composite Score",
        "description": "Overall renewable energy potential",
        "unit": "index",
        "min_value": 0.0,
        "max_value": 1.0,
    },
]

# (name, geopolitical zone, capital); names match the ADM1_EN boundary labels
NIGERIAN_STATES: list[tuple[str, str, str]] = [
    ("Abia", "South East", "Umuahia"),
    ("Adamawa", "North East", "Yola"),
    ("Akwa Ibom", "South South", "Uyo"),
    ("Anambra", "South East", "Awka"),
    ("Bauchi", "North East", "Bauchi"),
    ("Bayelsa", "South South", "Yenagoa"),
    ("Benue", "North Central", "Makurdi"),
    ("Borno", "North East", "Maiduguri"),
    ("Cross River", "South South", "Calabar"),
    ("Delta", "South South", "Asaba"),
    ("Ebonyi", "South East", "Abakaliki"),
    ("Edo", "South South", "Benin City"),
    ("Ekiti", "South West", "Ado Ekiti"),
    ("Enugu", "South East", "Enugu"),
    ("Federal Capital Territory", "North Central", "Abuja"),
    ("Gombe", "North East", "Gombe"),
    ("Imo", "South East", "Owerri"),
    ("Jigawa", "North West", "Dutse"),
    ("Kaduna", "North West", "Kaduna"),
    ("Kano", "North West", "Kano"),
    ("Katsina", "North West", "Katsina"),
    ("Kebbi", "North West", "Birnin Kebbi"),
    ("Kogi", "North Central", "Lokoja"),
    ("Kwara", "North Central", "Ilorin"),
    ("Lagos", "South West", "Ikeja"),
    ("Nasarawa", "North Central", "Lafia"),
    ("Niger", "North Central", "Minna"),
    ("Ogun", "South West", "Abeokuta"),
    ("Ondo", "South West", "Akure"),
    ("Osun", "South West", "Osogbo"),
    ("Oyo", "South West", "Ibadan"),
    ("Plateau", "North Central", "Jos"),
    ("Rivers", "South South", "Port Harcourt"),
    ("Sokoto", "North West", "Sokoto"),
    ("Taraba", "North East", "Jalingo"),
    ("Yobe", "North East", "Damaturu"),
    ("Zamfara", "North West", "Gusau"),
]


def region_code(name: str) -> str:
    """Derive a state code from its name ("Cross River" -> "CROSS_RIVER")."""
    return name.strip().upper().replace(" ", "_")


async def seed_reference_data(db: AsyncSession, include_regions: bool = True) -> None:
    """Insert missing energy sources (and states). Safe to run on every start."""
    result = await db.execute(select(EnergySource.source_code))
    existing_sources = set(result.scalars().all())
    new_sources = [
        EnergySource(**src) for src in ENERGY_SOURCES
        if src["source_code"] not in existing_sources
    ]
    db.add_all(new_sources)

    new_regions: list[Region] = []
    if include_regions:
        result = await db.execute(select(Region.name))
        existing_regions = set(result.scalars().all())
        new_regions = [
            Region(code=region_code(name), name=name, zone=zone, capital=capital)
            for name, zone, capital in NIGERIAN_STATES
            if name not in existing_regions
        ]
        db.add_all(new_regions)

    if new_sources or new_regions:
        await db.commit()
        logger.info(
            "Seeded %d energy sources and %d regions", len(new_sources), len(new_regions)
        )
