"""Energy store configuration via Pydantic BaseSettings loaded from .env."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    app_name: str = "Nigeria Energy Store"
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"

    # Network
    host: str = "127.0.0.1"
    port: int = 8000
    api_prefix: str = "/api"
    cors_origins: list[str] = [
        "http://localhost:5173",
        "http://localhost:8000",
    ]

    # Storage (relative paths resolved from backend/ at runtime)
    data_dir: str = "./data"
    database_path: str = "./data/energy.db"
    database_url: str = ""  # e.g. postgresql+asyncpg://user:pw@host/nigeria_energy
    max_db_connections: int = 5

    # PostgreSQL-only provisioning
    use_timescale: bool = False
    provision_roles: bool = False

    # Reference data
    seed_regions: bool = True
    auto_create_regions: bool = False  # register unknown states on ingest

    # Ingestion
    default_data_source: str = "realtime_feed"

    # Alerting
    alert_suppression_minutes: int = 0  # 0 = every breach fires
    recent_alert_window_minutes: int = 60

    # Feed polling (disabled when feed_url is empty)
    feed_url: str = ""
    feed_poll_minutes: int = 60
    feed_timeout_seconds: float = 30.0

    # API access log
    access_log_enabled: bool = True

    uvicorn_workers: int = 1

    @property
    def is_sqlite(self) -> bool:
        return self.resolved_database_url.startswith("sqlite")

    @property
    def resolved_database_url(self) -> str:
        if self.database_url:
            return self.database_url
        return f"sqlite+aiosqlite:///{self.database_path}"

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),
        env_file_encoding="utf-8",
        env_prefix="ENERGY_STORE_",
        extra="ignore",
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def assemble_cors_origins(cls, value: list[str] | str) -> list[str]:
        if isinstance(value, str) and not value.startswith("["):
            return [o.strip() for o in value.split(",") if o.strip()]
        if isinstance(value, list):
            return value
        return ["http://localhost:5173"]

    @model_validator(mode="after")
    def _resolve_paths(self) -> "Settings":
        """Ensure data paths are absolute."""
        base = Path(__file__).resolve().parent.parent  # backend/
        for field in ("data_dir", "database_path"):
            val = getattr(self, field)
            if not Path(val).is_absolute():
                setattr(self, field, str(base / val))
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
