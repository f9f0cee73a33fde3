"""API v1 router aggregation."""

from fastapi import APIRouter

from tablefed.api.v1.endpoints import health, tables

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(tables.router, prefix="/tables", tags=["tables"])
