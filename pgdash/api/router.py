from fastapi import APIRouter
from pgdash.api.endpoints import ai, databases, metrics, query, tables, users

api_router = APIRouter()

# Combine all sub-routers into one
api_router.include_router(databases.router)
api_router.include_router(tables.router)
api_router.include_router(metrics.router)
api_router.include_router(users.router)
api_router.include_router(query.router)
api_router.include_router(ai.router)
