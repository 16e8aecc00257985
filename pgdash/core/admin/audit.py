import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from pgdash.core.admin.metrics import fetch_slow_queries
from pgdash.core.sql import rows_as_dicts


# -----------------------------------------------------------------------------
# AUDIT MODULE
# Purpose: gather the statistics behind the assistant's optimization advice
# and run a catalog-based security audit.
# -----------------------------------------------------------------------------

logger = logging.getLogger(__name__)

TABLE_STATS_SQL = text(
    """
    SELECT
      schemaname,
      relname AS tablename,
      n_tup_ins AS inserts,
      n_tup_upd AS updates,
      n_tup_del AS deletes,
      n_live_tup AS live_tuples,
      n_dead_tup AS dead_tuples
    FROM pg_stat_user_tables
    ORDER BY n_live_tup DESC
    LIMIT 20
    """
)

UNUSED_INDEXES_SQL = text(
    """
    SELECT
      schemaname,
      relname AS tablename,
      indexrelname AS indexname,
      idx_scan,
      idx_tup_read,
      idx_tup_fetch
    FROM pg_stat_user_indexes
    WHERE idx_scan = 0
    ORDER BY schemaname, relname
    """
)

CONNECTION_USAGE_SQL = text(
    """
    SELECT
      count(*) * 100.0
        / (SELECT setting::int FROM pg_settings WHERE name = 'max_connections')
      AS usage
    FROM pg_stat_activity
    """
)

USER_SECURITY_SQL = text(
    """
    SELECT
      usename AS username,
      valuntil AS password_expiry,
      usesuper AS is_superuser
    FROM pg_user
    WHERE usesuper = true
      OR valuntil IS NULL
      OR valuntil < NOW() + INTERVAL '30 days'
    ORDER BY usename
    """
)

TABLES_WITHOUT_PK_SQL = text(
    """
    SELECT t.table_schema, t.table_name
    FROM information_schema.tables t
    LEFT JOIN information_schema.table_constraints tc
      ON t.table_schema = tc.table_schema
      AND t.table_name = tc.table_name
      AND tc.constraint_type = 'PRIMARY KEY'
    WHERE t.table_type = 'BASE TABLE'
      AND t.table_schema NOT IN ('information_schema', 'pg_catalog')
      AND tc.constraint_name IS NULL
    ORDER BY t.table_schema, t.table_name
    """
)

SENSITIVE_COLUMNS_SQL = text(
    """
    SELECT table_schema, table_name, column_name, data_type
    FROM information_schema.columns
    WHERE table_schema NOT IN ('information_schema', 'pg_catalog')
      AND (
        LOWER(column_name) LIKE '%password%' OR
        LOWER(column_name) LIKE '%ssn%' OR
        LOWER(column_name) LIKE '%credit%' OR
        LOWER(column_name) LIKE '%card%' OR
        LOWER(column_name) LIKE '%secret%'
      )
    ORDER BY table_schema, table_name, column_name
    """
)


async def gather_optimization_stats(db: AsyncSession) -> Dict[str, Any]:
    """
    Collect the inputs of the optimization advisor.

    Slow query rows expose `mean_time` in milliseconds.
    """
    slow_queries = [
        {
            "query": row.get("query"),
            "calls": row.get("calls"),
            "total_time": row.get("total_exec_time"),
            "mean_time": row.get("mean_exec_time"),
        }
        for row in await fetch_slow_queries(db)
    ]
    usage = (await db.execute(CONNECTION_USAGE_SQL)).scalar()

    return {
        "slow_queries": slow_queries,
        "table_stats": rows_as_dicts(await db.execute(TABLE_STATS_SQL)),
        "unused_indexes": rows_as_dicts(await db.execute(UNUSED_INDEXES_SQL)),
        "connection_pool_usage": round(float(usage or 0), 2),
    }


def build_security_alerts(details: Dict[str, List[Dict[str, Any]]]) -> List[Dict[str, Any]]:
    """
    Turn audit findings into alerts, one per non-empty category.

    Example:
        build_security_alerts({"user_security": [{"username": "bob"}], ...})
        # [{"id": "user-security-...", "severity": "HIGH", ...}]
    """
    stamp = int(datetime.now(timezone.utc).timestamp() * 1000)
    alerts = []

    users = details.get("user_security") or []
    if users:
        alerts.append(
            {
                "id": f"user-security-{stamp}",
                "severity": "HIGH",
                "title": "User Security Issues",
                "description": f"Found {len(users)} users with potential security issues",
                "affected": [u["username"] for u in users],
                "recommendation": "Review user privileges and password policies",
            }
        )

    tables = details.get("tables_without_pk") or []
    if tables:
        alerts.append(
            {
                "id": f"no-pk-{stamp}",
                "severity": "MEDIUM",
                "title": "Tables Without Primary Keys",
                "description": f"Found {len(tables)} tables without primary keys",
                "affected": [f"{t['table_schema']}.{t['table_name']}" for t in tables],
                "recommendation": "Add primary keys to ensure data integrity and replication support",
            }
        )

    columns = details.get("sensitive_columns") or []
    if columns:
        alerts.append(
            {
                "id": f"sensitive-data-{stamp}",
                "severity": "CRITICAL",
                "title": "Potentially Unencrypted Sensitive Data",
                "description": f"Found {len(columns)} columns that may contain sensitive data",
                "affected": [
                    f"{c['table_schema']}.{c['table_name']}.{c['column_name']}"
                    for c in columns
                ],
                "recommendation": "Ensure sensitive data is properly encrypted and access is restricted",
            }
        )

    return alerts


async def run_security_audit(db: AsyncSession) -> Dict[str, Any]:
    details = {
        "user_security": rows_as_dicts(await db.execute(USER_SECURITY_SQL)),
        "tables_without_pk": rows_as_dicts(await db.execute(TABLES_WITHOUT_PK_SQL)),
        "sensitive_columns": rows_as_dicts(await db.execute(SENSITIVE_COLUMNS_SQL)),
    }
    alerts = build_security_alerts(details)
    logger.info(f"Security audit produced {len(alerts)} alerts")
    return {"alerts": alerts, "details": details}
