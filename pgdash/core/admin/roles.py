import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import text
from sqlalchemy.engine import Dialect
from sqlalchemy.ext.asyncio import AsyncSession

from pgdash.core.sql import quote_identifier, render_literal, rows_as_dicts


# -----------------------------------------------------------------------------
# ROLES MODULE
# Purpose: manage the login roles ("users") of a PostgreSQL cluster.
# A role's display name is stored as its COMMENT.
# -----------------------------------------------------------------------------

logger = logging.getLogger(__name__)

PROTECTED_ROLES = frozenset({"postgres"})

# (request flag, keyword when true, keyword when false)
ROLE_FLAGS = (
    ("can_create_db", "CREATEDB", "NOCREATEDB"),
    ("is_superuser", "SUPERUSER", "NOSUPERUSER"),
    ("can_replicate", "REPLICATION", "NOREPLICATION"),
)

_DISPLAY_NAME = """
    COALESCE(
      d.description,
      CASE
        WHEN u.usename = 'postgres' THEN 'PostgreSQL Superuser'
        WHEN u.usesuper THEN 'Database Administrator'
        WHEN u.usecreatedb THEN 'Database Creator'
        ELSE 'Standard User'
      END
    ) AS display_name
"""

LIST_ROLES_SQL = text(
    f"""
    SELECT
      u.usename AS username,
      u.usecreatedb AS can_create_db,
      u.usesuper AS is_superuser,
      u.userepl AS can_replicate,
      u.valuntil AS password_expiry,
      {_DISPLAY_NAME}
    FROM pg_user u
    LEFT JOIN pg_shdescription d
      ON d.objoid = u.usesysid AND d.classoid = 'pg_authid'::regclass
    ORDER BY u.usename
    """
)

ROLE_DETAILS_SQL = text(
    f"""
    SELECT
      u.usename AS username,
      u.usecreatedb AS can_create_db,
      u.usesuper AS is_superuser,
      u.userepl AS can_replicate,
      u.valuntil AS password_expiry,
      {_DISPLAY_NAME},
      true AS is_active,
      (SELECT backend_start FROM pg_stat_activity
        WHERE usename = u.usename ORDER BY backend_start DESC LIMIT 1) AS last_login,
      (SELECT COUNT(*) FROM pg_stat_activity WHERE usename = u.usename) AS active_connections
    FROM pg_user u
    LEFT JOIN pg_shdescription d
      ON d.objoid = u.usesysid AND d.classoid = 'pg_authid'::regclass
    WHERE u.usename = :username
    """
)

ROLE_PRIVILEGES_SQL = text(
    """
    SELECT
      grantee AS role_name,
      table_schema AS schema_name,
      table_name AS object_name,
      ARRAY_AGG(privilege_type ORDER BY privilege_type) AS privileges
    FROM (
      SELECT grantee, table_schema, table_name, privilege_type
      FROM information_schema.table_privileges
      WHERE grantee = :username
      UNION ALL
      SELECT grantee, specific_schema, specific_name, privilege_type
      FROM information_schema.routine_privileges
      WHERE grantee = :username
    ) p
    GROUP BY grantee, table_schema, table_name
    ORDER BY table_schema, table_name
    """
)

ROLE_EXISTS_SQL = text("SELECT 1 FROM pg_user WHERE usename = :username")

ROLE_DATABASES_SQL = text(
    """
    SELECT
      d.datname AS name,
      pg_size_pretty(pg_database_size(d.datname)) AS size,
      d.datcollate AS collation,
      d.datctype AS ctype
    FROM pg_database d
    JOIN pg_roles r ON d.datdba = r.oid
    WHERE r.rolname = :username
      AND d.datname NOT IN ('template0', 'template1')
    ORDER BY d.datname
    """
)

ROLE_CONNECTIONS_SQL = text(
    """
    SELECT
      pid,
      datname AS database,
      host(client_addr) AS client_addr,
      client_port,
      backend_start AS connect_time,
      state,
      EXTRACT(EPOCH FROM (now() - backend_start)) AS duration
    FROM pg_stat_activity
    WHERE usename = :username
      AND state IS NOT NULL
    ORDER BY backend_start DESC
    """
)


# =========================
# Statement builders
# =========================
def build_create_role(
    username: str,
    password: str,
    can_create_db: bool = False,
    is_superuser: bool = False,
    can_replicate: bool = False,
    dialect: Optional[Dialect] = None,
) -> str:
    """
    Example:
        build_create_role("bob", "pw", can_create_db=True)
        # CREATE USER "bob" WITH PASSWORD 'pw' CREATEDB
    """
    flags = {
        "can_create_db": can_create_db,
        "is_superuser": is_superuser,
        "can_replicate": can_replicate,
    }
    statement = (
        f"CREATE USER {quote_identifier(username, dialect)} "
        f"WITH PASSWORD {render_literal(password, dialect)}"
    )
    for flag, enabled_keyword, _ in ROLE_FLAGS:
        if flags[flag]:
            statement += f" {enabled_keyword}"
    return statement


def build_alter_role(
    username: str,
    changes: Dict[str, Optional[bool]],
    new_password: Optional[str] = None,
    dialect: Optional[Dialect] = None,
) -> List[str]:
    """One ALTER USER per flag that was explicitly set, then the password."""
    role = quote_identifier(username, dialect)
    statements = []
    for flag, enabled_keyword, disabled_keyword in ROLE_FLAGS:
        value = changes.get(flag)
        if value is None:
            continue
        statements.append(
            f"ALTER USER {role} {enabled_keyword if value else disabled_keyword}"
        )
    if new_password:
        statements.append(
            f"ALTER USER {role} WITH PASSWORD {render_literal(new_password, dialect)}"
        )
    return statements


def build_comment_on_role(
    username: str, display_name: str, dialect: Optional[Dialect] = None
) -> str:
    return (
        f"COMMENT ON ROLE {quote_identifier(username, dialect)} "
        f"IS {render_literal(display_name, dialect)}"
    )


# =========================
# Queries
# =========================
async def list_roles(db: AsyncSession) -> List[Dict[str, Any]]:
    result = await db.execute(LIST_ROLES_SQL)
    return rows_as_dicts(result)


async def role_exists(username: str, db: AsyncSession) -> bool:
    result = await db.execute(ROLE_EXISTS_SQL, {"username": username})
    return result.scalar() is not None


async def get_role_details(username: str, db: AsyncSession) -> Optional[Dict[str, Any]]:
    """Role flags, activity and granted privileges; None for unknown roles."""
    result = await db.execute(ROLE_DETAILS_SQL, {"username": username})
    details = result.mappings().first()
    if details is None:
        return None

    privileges = await db.execute(ROLE_PRIVILEGES_SQL, {"username": username})
    details = dict(details)
    details["permissions"] = rows_as_dicts(privileges)
    details["connection_count"] = int(details.get("active_connections") or 0)
    return details


async def list_role_databases(username: str, db: AsyncSession) -> List[Dict[str, Any]]:
    result = await db.execute(ROLE_DATABASES_SQL, {"username": username})
    return rows_as_dicts(result)


async def list_role_connections(username: str, db: AsyncSession) -> List[Dict[str, Any]]:
    """
    Current sessions of a role.

    PostgreSQL keeps no connection history, so only live sessions are shown.
    """
    result = await db.execute(ROLE_CONNECTIONS_SQL, {"username": username})
    connections = []
    for row in rows_as_dicts(result):
        row["duration"] = round(float(row.get("duration") or 0))
        row["status"] = row.get("state") or "unknown"
        connections.append(row)
    return connections


# =========================
# Changes
# =========================
async def create_role(
    db: AsyncSession,
    username: str,
    password: str,
    can_create_db: bool = False,
    is_superuser: bool = False,
    can_replicate: bool = False,
) -> None:
    connection = await db.connection()
    statement = build_create_role(
        username,
        password,
        can_create_db,
        is_superuser,
        can_replicate,
        dialect=connection.dialect,
    )
    await connection.exec_driver_sql(statement)
    await db.commit()
    logger.info(f"Created role {username}")


async def update_role(
    db: AsyncSession,
    username: str,
    changes: Dict[str, Optional[bool]],
    new_password: Optional[str] = None,
) -> int:
    """Apply every change in a single transaction. Returns the statement count."""
    connection = await db.connection()
    statements = build_alter_role(
        username, changes, new_password, dialect=connection.dialect
    )
    for statement in statements:
        await connection.exec_driver_sql(statement)
    await db.commit()
    logger.info(f"Updated role {username} ({len(statements)} changes)")
    return len(statements)


async def drop_role(db: AsyncSession, username: str) -> None:
    connection = await db.connection()
    await connection.exec_driver_sql(
        f"DROP USER IF EXISTS {quote_identifier(username, connection.dialect)}"
    )
    await db.commit()
    logger.info(f"Dropped role {username}")


async def set_display_name(db: AsyncSession, username: str, display_name: str) -> None:
    connection = await db.connection()
    await connection.exec_driver_sql(
        build_comment_on_role(username, display_name, dialect=connection.dialect)
    )
    await db.commit()
