"""
API v1 router.

Aggregates all v1 endpoints.
"""

from fastapi import APIRouter

from app.api.v1.endpoints import events, profile, sleep, stats

api_router = APIRouter()

# Include endpoint routers
api_router.include_router(
    events.router, prefix="/events", tags=["Events"]
)
api_router.include_router(
    sleep.router, prefix="/sleep", tags=["Sleep sessions"]
)
api_router.include_router(
    stats.router, prefix="/stats", tags=["Statistics"]
)
api_router.include_router(
    profile.router, tags=["Baby profile"]
)
