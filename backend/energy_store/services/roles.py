"""Database roles as explicit configuration, applied at provisioning time.

Only PostgreSQL understands roles; on SQLite ``init_db`` skips provisioning.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection

logger = logging.getLogger(__name__)

ALL_TABLES = "ALL TABLES IN SCHEMA public"


@dataclass(frozen=True)
class Grant:
    privileges: tuple[str, ...]
    tables: tuple[str, ...] = (ALL_TABLES,)


@dataclass(frozen=True)
class AccessRole:
    name: str
    grants: tuple[Grant, ...] = field(default_factory=tuple)


DEFAULT_ROLES: tuple[AccessRole, ...] = (
    AccessRole("energy_reader", (Grant(("SELECT",)),)),
    AccessRole(
        "energy_writer",
        (
            Grant(
                ("SELECT", "INSERT", "UPDATE"),
                (
                    "energy_measurements",
                    "energy_daily_aggregates",
                    "energy_monthly_aggregates",
                    "regional_summaries",
                    "alert_history",
                    "data_quality_log",
                ),
            ),
            Grant(("SELECT",), ("regions", "energy_sources", "alert_configurations")),
        ),
    ),
    AccessRole("energy_admin", (Grant(("ALL PRIVILEGES",)),)),
)


def role_statements(roles: tuple[AccessRole, ...] = DEFAULT_ROLES) -> list[str]:
    """Render idempotent CREATE ROLE / GRANT statements for ``roles``."""
    statements: list[str] = []
    for role in roles:
        statements.append(
            "DO $$ BEGIN "
            f"IF NOT EXISTS (SELECT 1 FROM pg_roles WHERE rolname = '{role.name}') THEN "
            f"CREATE ROLE {role.name}; "
            "END IF; END $$"
        )
        for grant in role.grants:
            privileges = ", ".join(grant.privileges)
            for table in grant.tables:
                statements.append(f"GRANT {privileges} ON {table} TO {role.name}")
    return statements


async def provision_roles(
    conn: AsyncConnection, roles: tuple[AccessRole, ...] = DEFAULT_ROLES
) -> int:
    """Apply role definitions on a PostgreSQL connection. Returns statements run."""
    if conn.dialect.name != "postgresql":
        logger.info("Skipping role provisioning on %s", conn.dialect.name)
        return 0

    statements = role_statements(roles)
    for stmt in statements:
        await conn.execute(text(stmt))
    logger.info("Provisioned %d database roles (%d statements)", len(roles), len(statements))
    return len(statements)
