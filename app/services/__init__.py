"""Business logic services."""

from app.services.event_service import EventService
from app.services.profile_service import ProfileService
from app.services.stats_service import StatsService

__all__ = [
    "EventService",
    "ProfileService",
    "StatsService",
]
