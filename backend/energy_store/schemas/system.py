"""System schemas."""

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str
    service: str = "energy-store"
    feed_enabled: bool = False
