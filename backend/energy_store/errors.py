"""Domain errors raised by services and translated to HTTP by the routes."""

from __future__ import annotations

from typing import Any


class EnergyStoreError(Exception):
    """Base class for all energy store errors."""


class MalformedBatchError(EnergyStoreError):
    """No feature of an ingestion batch passed validation."""

    def __init__(self, message: str, rejected: list[dict[str, Any]] | None = None):
        super().__init__(message)
        self.rejected = rejected or []


class UnknownRegionError(EnergyStoreError):
    def __init__(self, name: str):
        super().__init__(f"Unknown region: {name}")
        self.name = name


class UnknownSourceError(EnergyStoreError):
    def __init__(self, code: str):
        super().__init__(f"Unknown energy source: {code}")
        self.code = code


class NotFoundError(EnergyStoreError):
    pass


class AlertTransitionError(EnergyStoreError):
    pass
