"""Region and energy source reference data."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from energy_store.database import get_db
from energy_store.schemas.regions import EnergySourceOut, RegionCreate, RegionOut
from energy_store.services import get_region_service

router = APIRouter()


@router.get("/regions", response_model=list[RegionOut])
async def list_regions(zone: str | None = None, db: AsyncSession = Depends(get_db)):
    """List registered regions, optionally for one zone."""
    return await get_region_service().list_regions(db, zone)


@router.post("/regions", response_model=RegionOut, status_code=201)
async def create_region(body: RegionCreate, db: AsyncSession = Depends(get_db)):
    """Register a region."""
    try:
        return await get_region_service().create(db, body.model_dump())
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=409, detail=f"Region '{body.name}' already exists")


@router.get("/sources", response_model=list[EnergySourceOut])
async def list_sources(db: AsyncSession = Depends(get_db)):
    """Energy sources with unit and valid range."""
    return await get_region_service().list_sources(db)
