"""Alert rule and alert event schemas."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class AlertRuleCreate(BaseModel):
    """Create an alert rule. Threshold rules need ``condition_params.threshold``."""
    name: str = Field(min_length=1, max_length=100)
    description: str | None = None
    source_code: str
    condition_type: Literal["threshold", "anomaly", "missing"] = "threshold"
    condition_params: dict[str, Any]
    severity: Literal["info", "warning", "critical"] = "warning"
    notification_channels: list[str] = []
    is_active: bool = True

    @model_validator(mode="after")
    def _check_threshold(self) -> "AlertRuleCreate":
        if self.condition_type == "threshold":
            threshold = self.condition_params.get("threshold")
            if isinstance(threshold, bool) or not isinstance(threshold, (int, float)):
                raise ValueError("threshold rules need a numeric condition_params.threshold")
        return self


class AlertRuleUpdate(BaseModel):
    is_active: bool | None = None
    severity: Literal["info", "warning", "critical"] | None = None
    notification_channels: list[str] | None = None


class AlertRuleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None = None
    source_id: int
    condition_type: str
    condition_params: dict[str, Any]
    severity: str
    notification_channels: list[str] | None = None
    is_active: bool


class AlertEventOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    alert_config_id: int
    triggered_at: datetime
    region_id: int
    source_id: int
    current_value: float
    threshold_value: float
    message: str | None = None
    status: str
    acknowledged_by: str | None = None
    acknowledged_at: datetime | None = None
    resolved_at: datetime | None = None
    resolution_notes: str | None = None


class AcknowledgeRequest(BaseModel):
    acknowledged_by: str = Field(min_length=1, max_length=100)


class ResolveRequest(BaseModel):
    resolution_notes: str | None = None
