import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from pgdash.core import schemas
from pgdash.core.admin import execute
from pgdash.core.database import get_db, get_environment

router = APIRouter(
    prefix="/api/{env}",
    tags=["Query"],
    dependencies=[Depends(get_environment)],
)

db_dep = Annotated[AsyncSession, Depends(get_db)]


@router.post("/query", response_model=schemas.QueryResponse)
async def run_query(payload: schemas.QueryRequest, db: db_dep):
    """
    Execute a custom query.
    In readonly mode (the default) only SELECT statements are accepted.
    """
    if payload.readonly and not execute.is_select(payload.query):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only SELECT queries are allowed in readonly mode",
        )

    try:
        return await execute.execute_sql(db, payload.query)
    except Exception as error:
        await db.rollback()
        logging.error(f"Query failed: {error}")
        raise HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, str(error))
