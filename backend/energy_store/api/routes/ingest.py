"""GeoJSON batch ingestion."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from energy_store.database import get_db
from energy_store.errors import MalformedBatchError, UnknownRegionError, UnknownSourceError
from energy_store.schemas.ingest import IngestBatch, IngestResult
from energy_store.services import get_ingestion_service

router = APIRouter()


@router.post("", response_model=IngestResult, status_code=201)
async def ingest_batch(body: IngestBatch, db: AsyncSession = Depends(get_db)):
    """Ingest one FeatureCollection, one feature per region."""
    ingestion = get_ingestion_service()
    try:
        return await ingestion.ingest(db, body)
    except MalformedBatchError as e:
        raise HTTPException(
            status_code=422, detail={"message": str(e), "rejected": e.rejected}
        )
    except (UnknownRegionError, UnknownSourceError) as e:
        raise HTTPException(status_code=422, detail=str(e))
