"""Threshold alert evaluation, rule management and alert event lifecycle."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from energy_store.config import settings
from energy_store.errors import AlertTransitionError, NotFoundError, UnknownSourceError
from energy_store.models.alerts import AlertEvent, AlertRule, AlertStatus
from energy_store.models.energy_source import EnergySource
from energy_store.models.measurement import Measurement

logger = logging.getLogger(__name__)


VALID_TRANSITIONS: dict[AlertStatus, set[AlertStatus]] = {
    AlertStatus.ACTIVE: {AlertStatus.ACKNOWLEDGED, AlertStatus.RESOLVED},
    AlertStatus.ACKNOWLEDGED: {AlertStatus.RESOLVED},
    AlertStatus.RESOLVED: set(),
}


def format_value(value: float) -> str:
    return repr(float(value))


class AlertService:
    """Evaluates active rules against measurements and manages alert state."""

    def __init__(self, suppression_minutes: int | None = None):
        if suppression_minutes is None:
            suppression_minutes = settings.alert_suppression_minutes
        self._suppression = timedelta(minutes=suppression_minutes)

    async def evaluate(self, db: AsyncSession, measurement: Measurement) -> list[AlertEvent]:
        """Fire one event per active threshold rule the measurement exceeds."""
        result = await db.execute(
            select(AlertRule)
            .where(AlertRule.source_id == measurement.source_id, AlertRule.is_active == 1)
            .order_by(AlertRule.id)
        )
        rules = result.scalars().all()

        fired: list[AlertEvent] = []
        now = datetime.now(timezone.utc)
        for rule in rules:
            if rule.condition_type != "threshold":
                logger.debug("Rule %d: condition '%s' not evaluated", rule.id, rule.condition_type)
                continue

            threshold = float(rule.condition_params["threshold"])
            if not measurement.value > threshold:
                continue

            if self._suppression and await self._recently_fired(
                db, rule.id, measurement.region_id, now - self._suppression
            ):
                logger.debug(
                    "Rule %d suppressed for region %d", rule.id, measurement.region_id
                )
                continue

            event = AlertEvent(
                alert_config_id=rule.id,
                triggered_at=now,
                region_id=measurement.region_id,
                source_id=measurement.source_id,
                current_value=measurement.value,
                threshold_value=threshold,
                message=(
                    f"Value {format_value(measurement.value)} exceeds threshold "
                    f"{format_value(threshold)}"
                ),
                status=AlertStatus.ACTIVE.value,
            )
            db.add(event)
            fired.append(event)
            logger.info(
                "Alert '%s' (%s): region=%d value=%s > %s",
                rule.name, rule.severity, measurement.region_id,
                measurement.value, threshold,
            )

        if fired:
            await db.flush()
        return fired

    async def _recently_fired(
        self, db: AsyncSession, rule_id: int, region_id: int, since: datetime
    ) -> bool:
        result = await db.execute(
            select(func.count(AlertEvent.id)).where(
                AlertEvent.alert_config_id == rule_id,
                AlertEvent.region_id == region_id,
                AlertEvent.status == AlertStatus.ACTIVE.value,
                AlertEvent.triggered_at >= since,
            )
        )
        return (result.scalar() or 0) > 0

    async def count_recent_active(self, db: AsyncSession, minutes: int | None = None) -> int:
        """Active alerts triggered in the last ``minutes``."""
        window = minutes if minutes is not None else settings.recent_alert_window_minutes
        since = datetime.now(timezone.utc) - timedelta(minutes=window)
        result = await db.execute(
            select(func.count(AlertEvent.id)).where(
                AlertEvent.status == AlertStatus.ACTIVE.value,
                AlertEvent.triggered_at >= since,
            )
        )
        return result.scalar() or 0

    # --- Rules ---

    async def create_rule(self, db: AsyncSession, data: dict[str, Any]) -> AlertRule:
        result = await db.execute(
            select(EnergySource).where(EnergySource.source_code == data["source_code"].upper())
        )
        source = result.scalar_one_or_none()
        if source is None:
            raise UnknownSourceError(data["source_code"])

        rule = AlertRule(
            name=data["name"],
            description=data.get("description"),
            source_id=source.id,
            condition_type=data.get("condition_type", "threshold"),
            condition_params=data["condition_params"],
            severity=data.get("severity", "warning"),
            notification_channels=data.get("notification_channels") or [],
            is_active=1 if data.get("is_active", True) else 0,
        )
        db.add(rule)
        await db.commit()
        await db.refresh(rule)
        logger.info("Created alert rule %d '%s' on %s", rule.id, rule.name, source.source_code)
        return rule

    async def list_rules(self, db: AsyncSession, active_only: bool = False) -> list[AlertRule]:
        stmt = select(AlertRule).order_by(AlertRule.id)
        if active_only:
            stmt = stmt.where(AlertRule.is_active == 1)
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def update_rule(self, db: AsyncSession, rule_id: int, data: dict[str, Any]) -> AlertRule:
        rule = await db.get(AlertRule, rule_id)
        if rule is None:
            raise NotFoundError(f"Alert rule {rule_id} not found")

        if data.get("is_active") is not None:
            rule.is_active = 1 if data["is_active"] else 0
        if data.get("severity") is not None:
            rule.severity = data["severity"]
        if data.get("notification_channels") is not None:
            rule.notification_channels = data["notification_channels"]
        await db.commit()
        await db.refresh(rule)
        return rule

    # --- Events ---

    async def list_events(
        self, db: AsyncSession, status: str | None = None, limit: int = 100
    ) -> list[AlertEvent]:
        stmt = select(AlertEvent).order_by(AlertEvent.triggered_at.desc(), AlertEvent.id.desc())
        if status:
            stmt = stmt.where(AlertEvent.status == status)
        result = await db.execute(stmt.limit(limit))
        return list(result.scalars().all())

    async def _transition(
        self, db: AsyncSession, event_id: int, new_status: AlertStatus
    ) -> AlertEvent:
        event = await db.get(AlertEvent, event_id)
        if event is None:
            raise NotFoundError(f"Alert event {event_id} not found")

        current = AlertStatus(event.status)
        if new_status not in VALID_TRANSITIONS[current]:
            raise AlertTransitionError(
                f"Cannot move alert {event_id} from {current.value} to {new_status.value}"
            )
        event.status = new_status.value
        logger.info("Alert event %d: %s -> %s", event_id, current.value, new_status.value)
        return event

    async def acknowledge(self, db: AsyncSession, event_id: int, acknowledged_by: str) -> AlertEvent:
        event = await self._transition(db, event_id, AlertStatus.ACKNOWLEDGED)
        event.acknowledged_by = acknowledged_by
        event.acknowledged_at = datetime.now(timezone.utc)
        await db.commit()
        await db.refresh(event)
        return event

    async def resolve(
        self, db: AsyncSession, event_id: int, resolution_notes: str | None = None
    ) -> AlertEvent:
        event = await self._transition(db, event_id, AlertStatus.RESOLVED)
        event.resolved_at = datetime.now(timezone.utc)
        event.resolution_notes = resolution_notes
        await db.commit()
        await db.refresh(event)
        return event
