from typing import Any, Dict, List

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from pgdash.core.sql import rows_as_dicts


# -----------------------------------------------------------------------------
# TABLES MODULE
# Purpose: list the public tables of a database and describe their columns.
# -----------------------------------------------------------------------------

LIST_TABLES_SQL = text(
    """
    SELECT
      t.table_name,
      t.table_type,
      COALESCE(s.n_tup_ins, 0) AS row_count,
      pg_size_pretty(pg_total_relation_size(c.oid)) AS size
    FROM information_schema.tables t
    LEFT JOIN pg_stat_user_tables s ON s.relname = t.table_name
    LEFT JOIN pg_class c ON c.relname = t.table_name
    WHERE t.table_schema = 'public'
      AND t.table_type = 'BASE TABLE'
    ORDER BY t.table_name
    """
)

TABLE_SCHEMA_SQL = text(
    """
    SELECT
      column_name,
      data_type,
      is_nullable,
      column_default,
      character_maximum_length,
      numeric_precision,
      numeric_scale
    FROM information_schema.columns
    WHERE table_schema = 'public'
      AND table_name = :table_name
    ORDER BY ordinal_position
    """
)


async def list_tables(db: AsyncSession) -> List[Dict[str, Any]]:
    """Base tables of the public schema with inserted-row count and total size."""
    result = await db.execute(LIST_TABLES_SQL)
    return rows_as_dicts(result)


async def get_table_schema(table_name: str, db: AsyncSession) -> List[Dict[str, Any]]:
    """Columns of a public table in ordinal order (empty for unknown tables)."""
    result = await db.execute(TABLE_SCHEMA_SQL, {"table_name": table_name})
    return rows_as_dicts(result)
