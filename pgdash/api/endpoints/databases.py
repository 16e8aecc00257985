from datetime import datetime, timezone

from fastapi import APIRouter

from pgdash.core.admin import status as db_status
from pgdash.core.database import engines

router = APIRouter(prefix="/api", tags=["Databases"])


@router.get("/health")
async def health_check():
    return {"status": "OK", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/databases/status")
async def databases_status():
    """Connection status of every configured environment."""
    return await db_status.check_connections(engines)
