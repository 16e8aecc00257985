from typing import Any, Dict, List, Optional

from sqlalchemy import String, literal
from sqlalchemy.dialects.postgresql import asyncpg
from sqlalchemy.engine import Dialect
from sqlalchemy.ext.asyncio import AsyncSession


# -----------------------------------------------------------------------------
# SQL HELPERS
# DDL such as CREATE USER cannot take bind parameters, so role names and
# passwords are rendered with the PostgreSQL dialect's own quoting.
# -----------------------------------------------------------------------------

# Used when no live connection supplies its dialect (statement builders, tests)
POSTGRES_DIALECT = asyncpg.dialect()


def quote_identifier(name: str, dialect: Optional[Dialect] = None) -> str:
    """Always-quoted identifier: `bob"x` -> `"bob""x"`."""
    preparer = (dialect or POSTGRES_DIALECT).identifier_preparer
    return preparer.quote_identifier(name)


def render_literal(value: str, dialect: Optional[Dialect] = None) -> str:
    """String literal as the dialect renders it: `it's` -> `'it''s'`."""
    compiled = literal(value, String()).compile(
        dialect=dialect or POSTGRES_DIALECT,
        compile_kwargs={"literal_binds": True},
    )
    return str(compiled)


async def execute_verbatim(db: AsyncSession, sql: str):
    """
    Send SQL to the driver exactly as written.

    Unlike text(), nothing in the string is parsed, so ":name" and "\\:"
    reach PostgreSQL untouched.
    """
    connection = await db.connection()
    return await connection.exec_driver_sql(sql)


def rows_as_dicts(result) -> List[Dict[str, Any]]:
    """Materialize a row-returning result into plain dicts."""
    return [dict(row) for row in result.mappings().all()]


def format_bytes(size: int, decimals: int = 2) -> str:
    """
    Human readable byte count using 1024 steps.

    Example:
        format_bytes(1536)  # "1.5 KB"
    """
    if size <= 0:
        return "0 Bytes"

    units = ["Bytes", "KB", "MB", "GB", "TB", "PB", "EB", "ZB", "YB"]
    decimals = max(decimals, 0)
    index = 0
    value = float(size)
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1

    rounded = round(value, decimals)
    return f"{rounded:g} {units[index]}"
