"""Alert rules and alert events."""

from typing import Literal

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from energy_store.database import get_db
from energy_store.errors import AlertTransitionError, NotFoundError, UnknownSourceError
from energy_store.schemas.alerts import (
    AcknowledgeRequest,
    AlertEventOut,
    AlertRuleCreate,
    AlertRuleOut,
    AlertRuleUpdate,
    ResolveRequest,
)
from energy_store.services import get_alert_service

router = APIRouter()


@router.get("/rules", response_model=list[AlertRuleOut])
async def list_rules(active_only: bool = False, db: AsyncSession = Depends(get_db)):
    """List alert rules."""
    return await get_alert_service().list_rules(db, active_only)


@router.post("/rules", response_model=AlertRuleOut, status_code=201)
async def create_rule(body: AlertRuleCreate, db: AsyncSession = Depends(get_db)):
    """Create an alert rule."""
    try:
        return await get_alert_service().create_rule(db, body.model_dump())
    except UnknownSourceError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.patch("/rules/{rule_id}", response_model=AlertRuleOut)
async def update_rule(rule_id: int, body: AlertRuleUpdate, db: AsyncSession = Depends(get_db)):
    """Activate/deactivate a rule or change its severity and channels."""
    try:
        return await get_alert_service().update_rule(db, rule_id, body.model_dump())
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/events", response_model=list[AlertEventOut])
async def list_events(
    status: Literal["active", "acknowledged", "resolved"] | None = None,
    limit: int = 100,
    db: AsyncSession = Depends(get_db),
):
    """Alert history, newest first."""
    return await get_alert_service().list_events(db, status, limit)


@router.post("/events/{event_id}/acknowledge", response_model=AlertEventOut)
async def acknowledge_event(
    event_id: int, body: AcknowledgeRequest, db: AsyncSession = Depends(get_db)
):
    """Mark an active alert as acknowledged."""
    try:
        return await get_alert_service().acknowledge(db, event_id, body.acknowledged_by)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except AlertTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/events/{event_id}/resolve", response_model=AlertEventOut)
async def resolve_event(event_id: int, body: ResolveRequest, db: AsyncSession = Depends(get_db)):
    """Resolve an active or acknowledged alert."""
    try:
        return await get_alert_service().resolve(db, event_id, body.resolution_notes)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except AlertTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
