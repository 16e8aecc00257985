import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from pgdash.core.sql import format_bytes, rows_as_dicts


# -----------------------------------------------------------------------------
# METRICS MODULE
# Purpose: one snapshot of connection, throughput, storage and slow-query
# statistics for the current database.
# -----------------------------------------------------------------------------

logger = logging.getLogger(__name__)

SLOW_QUERY_PREVIEW_CHARS = 200

CONNECTIONS_SQL = text(
    """
    SELECT
      count(*) FILTER (WHERE state = 'active') AS active_connections,
      count(*) FILTER (WHERE state = 'idle') AS idle_connections,
      count(*) AS total_connections,
      (SELECT setting::int FROM pg_settings WHERE name = 'max_connections') AS max_connections
    FROM pg_stat_activity
    WHERE datname = current_database()
    """
)

PERFORMANCE_SQL = text(
    """
    SELECT
      pg_database_size(current_database()) AS database_size,
      numbackends AS backends,
      xact_commit AS commits,
      xact_rollback AS rollbacks,
      blks_read AS blocks_read,
      blks_hit AS blocks_hit,
      tup_returned AS tuples_returned,
      tup_fetched AS tuples_fetched,
      tup_inserted AS tuples_inserted,
      tup_updated AS tuples_updated,
      tup_deleted AS tuples_deleted,
      conflicts,
      temp_files,
      temp_bytes,
      deadlocks,
      stats_reset
    FROM pg_stat_database
    WHERE datname = current_database()
    """
)

TABLESPACES_SQL = text(
    """
    SELECT
      spcname AS name,
      pg_size_pretty(pg_tablespace_size(spcname)) AS size,
      pg_tablespace_size(spcname) AS size_bytes
    FROM pg_tablespace
    ORDER BY pg_tablespace_size(spcname) DESC
    """
)

LARGEST_TABLES_SQL = text(
    """
    SELECT
      schemaname,
      tablename,
      pg_size_pretty(pg_total_relation_size(quote_ident(schemaname) || '.' || quote_ident(tablename))) AS size,
      pg_total_relation_size(quote_ident(schemaname) || '.' || quote_ident(tablename)) AS size_bytes,
      pg_size_pretty(pg_relation_size(quote_ident(schemaname) || '.' || quote_ident(tablename))) AS table_size,
      pg_size_pretty(
        pg_total_relation_size(quote_ident(schemaname) || '.' || quote_ident(tablename))
        - pg_relation_size(quote_ident(schemaname) || '.' || quote_ident(tablename))
      ) AS index_size
    FROM pg_tables
    WHERE schemaname = 'public'
    ORDER BY size_bytes DESC
    LIMIT 10
    """
)

# Requires the pg_stat_statements extension
SLOW_QUERIES_SQL = text(
    """
    SELECT query, calls, total_exec_time, mean_exec_time, rows
    FROM pg_stat_statements
    WHERE query NOT LIKE '%pg_stat_statements%'
      AND query NOT LIKE '%information_schema%'
    ORDER BY mean_exec_time DESC
    LIMIT 10
    """
)


def _int(value) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def _float(value) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def cache_hit_ratio(blocks_hit: int, blocks_read: int) -> float:
    """Percentage of block reads served from shared buffers, 2 decimals."""
    if blocks_hit <= 0:
        return 0.0
    return round(blocks_hit / (blocks_hit + blocks_read) * 100, 2)


async def fetch_slow_queries(db: AsyncSession) -> List[Dict[str, Any]]:
    """
    Top queries by mean execution time.

    Returns an empty list when pg_stat_statements is not installed; the
    failed statement is confined to a savepoint so the session stays usable.
    """
    try:
        async with db.begin_nested():
            result = await db.execute(SLOW_QUERIES_SQL)
            return rows_as_dicts(result)
    except DBAPIError as e:
        logger.warning(f"pg_stat_statements not available: {e.orig}")
        return []


async def get_database_metrics(db: AsyncSession) -> Dict[str, Any]:
    """
    Collect the dashboard metrics snapshot.

    Example:
        metrics = await get_database_metrics(db)
        metrics["performance"]["cache_hit_ratio"]  # 99.87
    """
    connections = (await db.execute(CONNECTIONS_SQL)).mappings().first() or {}
    performance = (await db.execute(PERFORMANCE_SQL)).mappings().first() or {}
    tablespaces = rows_as_dicts(await db.execute(TABLESPACES_SQL))
    largest_tables = rows_as_dicts(await db.execute(LARGEST_TABLES_SQL))
    slow_queries = await fetch_slow_queries(db)

    database_size = _int(performance.get("database_size"))

    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "connections": {
            "active": _int(connections.get("active_connections")),
            "idle": _int(connections.get("idle_connections")),
            "total": _int(connections.get("total_connections")),
            "max": _int(connections.get("max_connections")) or 100,
        },
        "performance": {
            "cache_hit_ratio": cache_hit_ratio(
                _int(performance.get("blocks_hit")),
                _int(performance.get("blocks_read")),
            ),
            "commits": _int(performance.get("commits")),
            "rollbacks": _int(performance.get("rollbacks")),
            "tuples_returned": _int(performance.get("tuples_returned")),
            "tuples_fetched": _int(performance.get("tuples_fetched")),
            "tuples_inserted": _int(performance.get("tuples_inserted")),
            "tuples_updated": _int(performance.get("tuples_updated")),
            "tuples_deleted": _int(performance.get("tuples_deleted")),
            "conflicts": _int(performance.get("conflicts")),
            "deadlocks": _int(performance.get("deadlocks")),
            "temp_files": _int(performance.get("temp_files")),
            "temp_bytes": _int(performance.get("temp_bytes")),
        },
        "storage": {
            "database_size": database_size,
            "database_size_formatted": format_bytes(database_size),
            "tablespaces": [
                {
                    "name": ts["name"],
                    "size": ts["size"],
                    "size_bytes": _int(ts["size_bytes"]),
                }
                for ts in tablespaces
            ],
            "largest_tables": [
                {
                    "schema": table["schemaname"],
                    "name": table["tablename"],
                    "total_size": table["size"],
                    "table_size": table["table_size"],
                    "index_size": table["index_size"],
                    "size_bytes": _int(table["size_bytes"]),
                }
                for table in largest_tables
            ],
        },
        "slow_queries": [
            {
                "query": _preview(query.get("query")),
                "calls": _int(query.get("calls")),
                "total_time": _float(query.get("total_exec_time")),
                "mean_time": _float(query.get("mean_exec_time")),
                "rows": _int(query.get("rows")),
            }
            for query in slow_queries
        ],
    }


def _preview(query) -> str:
    if not query:
        return ""
    return query[:SLOW_QUERY_PREVIEW_CHARS] + "..."
