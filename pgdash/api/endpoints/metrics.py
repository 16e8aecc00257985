import logging
from typing import Annotated, List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from pgdash.core import schemas
from pgdash.core.admin import metrics, migrations
from pgdash.core.database import get_db, get_environment

router = APIRouter(
    prefix="/api/{env}",
    tags=["Metrics"],
    dependencies=[Depends(get_environment)],
)

db_dep = Annotated[AsyncSession, Depends(get_db)]


@router.get("/metrics")
async def get_metrics(db: db_dep):
    """Real-time connection, performance and storage metrics."""
    try:
        return await metrics.get_database_metrics(db)
    except Exception as error:
        logging.error(f"Error fetching metrics: {error}")
        raise HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, str(error))


@router.get("/migrations", response_model=List[schemas.MigrationResponse])
async def get_migrations(db: db_dep):
    """Applied migrations, newest first."""
    try:
        return await migrations.list_migrations(db)
    except Exception as error:
        logging.error(f"Error reading migration status: {error}")
        raise HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, str(error))
