import logging
import time
from typing import Any, Dict, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from pgdash.core.sql import execute_verbatim, rows_as_dicts


# -----------------------------------------------------------------------------
# EXECUTE MODULE
# Purpose: run caller-supplied SQL and shape the result for the UI.
# Callers are responsible for any gating (read-only mode, safety check).
# -----------------------------------------------------------------------------

logger = logging.getLogger(__name__)


def is_select(sql: str) -> bool:
    return sql.strip().lower().startswith("select")


def leading_command(sql: str) -> str:
    """First keyword of the statement, e.g. "SELECT" or "UPDATE"."""
    words = sql.strip().split(None, 1)
    return words[0].upper() if words else ""


async def execute_sql(
    db: AsyncSession, sql: str, statement_timeout_ms: Optional[int] = None
) -> Dict[str, Any]:
    """
    Execute one statement in its own transaction.

    Args:
        db: Async database session.
        sql: Statement to run verbatim.
        statement_timeout_ms: Server-side timeout for this transaction only.

    Returns:
        rows, row_count, fields, execution_time (ms) and command.
    """
    if statement_timeout_ms:
        await db.execute(text(f"SET LOCAL statement_timeout = {int(statement_timeout_ms)}"))

    start = time.perf_counter()
    result = await execute_verbatim(db, sql)
    execution_time = round((time.perf_counter() - start) * 1000, 2)

    if result.returns_rows:
        fields = list(result.keys())
        rows = rows_as_dicts(result)
        row_count = len(rows)
    else:
        fields, rows = [], []
        row_count = result.rowcount

    await db.commit()
    logger.info(f"Executed {leading_command(sql)} in {execution_time}ms ({row_count} rows)")

    return {
        "rows": rows,
        "row_count": row_count,
        "fields": fields,
        "execution_time": execution_time,
        "command": leading_command(sql),
    }
