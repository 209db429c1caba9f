"""API router aggregator."""

from fastapi import APIRouter

from kerzenwelt.api import settings

api_router = APIRouter(tags=["API"])

# Include all API routers
api_router.include_router(settings.router, prefix="/settings", tags=["Settings"])
