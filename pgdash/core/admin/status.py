import logging
from typing import Any, Dict

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)

SERVER_INFO_SQL = text("SELECT current_database() AS database, version() AS version, now() AS now")


async def check_connection(engine: AsyncEngine) -> Dict[str, Any]:
    """Connect once and report database name, server version and server time."""
    try:
        async with engine.connect() as conn:
            row = (await conn.execute(SERVER_INFO_SQL)).mappings().first()
    except Exception as error:
        logger.warning(f"Connection check failed for {engine.url.database}: {error}")
        return {"connected": False, "error": str(error)}

    return {
        "connected": True,
        "database": row["database"],
        "version": row["version"],
        "timestamp": row["now"],
    }


async def check_connections(engines: Dict[str, AsyncEngine]) -> Dict[str, Dict[str, Any]]:
    return {env: await check_connection(engine) for env, engine in engines.items()}
