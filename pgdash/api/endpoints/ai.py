import logging
from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from pgdash.ai_feature.service import ai_query_service
from pgdash.core import schemas
from pgdash.core.admin import audit, execute
from pgdash.core.config import settings
from pgdash.core.database import get_db, get_environment

router = APIRouter(
    prefix="/api/{env}/ai",
    tags=["AI Assistant"],
    dependencies=[Depends(get_environment)],
)

db_dep = Annotated[AsyncSession, Depends(get_db)]


def _now() -> datetime:
    return datetime.now(timezone.utc)


@router.post("/natural-language", response_model=schemas.NaturalLanguageResponse)
async def natural_language(payload: schemas.NaturalLanguageRequest):
    """
    Translate a request such as "how many users" into SQL.
    A confidence of 0.5 means no rule matched and the SQL is a guess.
    """
    result = ai_query_service.process_natural_language(payload.query)
    return {"success": True, "result": result, "timestamp": _now()}


@router.post("/execute-query", response_model=schemas.ExecuteQueryResponse)
async def execute_query(payload: schemas.ExecuteQueryRequest, db: db_dep):
    """Run SQL (generated or hand written) after the safety check."""
    if payload.safety_check:
        verdict = ai_query_service.perform_security_check(payload.sql)
        if not verdict.safe:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={
                    "error": "Query failed security check",
                    "warnings": verdict.warnings,
                },
            )

    try:
        result = await execute.execute_sql(
            db, payload.sql, statement_timeout_ms=settings.STATEMENT_TIMEOUT_MS
        )
    except Exception as error:
        await db.rollback()
        logging.error(f"AI query execution error: {error}")
        raise HTTPException(
            status.HTTP_500_INTERNAL_SERVER_ERROR, f"Failed to execute query: {error}"
        )

    return {
        "success": True,
        "data": result["rows"],
        "row_count": result["row_count"],
        "execution_time": result["execution_time"],
        "fields": result["fields"],
        "timestamp": _now(),
    }


@router.get(
    "/optimization-recommendations", response_model=schemas.OptimizationResponse
)
async def optimization_recommendations(db: db_dep):
    try:
        database_stats = await audit.gather_optimization_stats(db)
    except Exception as error:
        logging.error(f"Failed to gather optimization stats: {error}")
        raise HTTPException(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            f"Failed to generate optimization recommendations: {error}",
        )

    recommendations = ai_query_service.generate_optimization_recommendations(
        database_stats
    )
    return {
        "success": True,
        "recommendations": recommendations,
        "database_stats": database_stats,
        "timestamp": _now(),
    }


@router.get("/security-audit", response_model=schemas.SecurityAuditResponse)
async def security_audit(db: db_dep):
    try:
        report = await audit.run_security_audit(db)
    except Exception as error:
        logging.error(f"Security audit error: {error}")
        raise HTTPException(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            f"Failed to perform security audit: {error}",
        )

    return {"success": True, **report, "timestamp": _now()}
