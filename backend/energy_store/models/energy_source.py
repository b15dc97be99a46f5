"""Energy source reference model."""

from enum import Enum
from typing import Optional

from sqlalchemy import Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from energy_store.models.base import Base


class SourceCode(str, Enum):
    SOLAR = "SOLAR"
    WIND = "WIND"
    HYDRO = "HYDRO"
    COMPOSITE = "COMPOSITE"


class EnergySource(Base):
    __tablename__ = "energy_sources"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    source_code: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    unit: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    min_value: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    max_value: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    is_active: Mapped[int] = mapped_column(Integer, default=1)

    def accepts(self, value: float) -> bool:
        """True if ``value`` lies inside the source's valid raw range."""
        if self.min_value is not None and value < self.min_value:
            return False
        if self.max_value is not None and value > self.max_value:
            return False
        return True

    def __repr__(self) -> str:
        return f"<EnergySource(code={self.source_code}, unit='{self.unit}')>"
