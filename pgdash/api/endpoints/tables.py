import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from pgdash.core.admin import tables
from pgdash.core.database import get_db, get_environment

router = APIRouter(
    prefix="/api/{env}/tables",
    tags=["Tables"],
    dependencies=[Depends(get_environment)],
)

db_dep = Annotated[AsyncSession, Depends(get_db)]


@router.get("")
async def list_tables(db: db_dep):
    try:
        return await tables.list_tables(db)
    except Exception as error:
        logging.error(f"Failed to list tables: {error}")
        raise HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, str(error))


@router.get("/{table_name}/schema")
async def get_table_schema(table_name: str, db: db_dep):
    try:
        return await tables.get_table_schema(table_name, db)
    except Exception as error:
        logging.error(f"Failed to read schema of {table_name}: {error}")
        raise HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, str(error))
