"""
Shared API dependencies.

Reusable FastAPI dependencies for service construction.
"""

from fastapi import Depends

from app.db.repositories.base import UnitOfWork
from app.db.session import get_unit_of_work
from app.services.event_service import EventService
from app.services.profile_service import ProfileService
from app.services.stats_service import StatsService


def get_event_service(uow: UnitOfWork = Depends(get_unit_of_work)) -> EventService:
    return EventService(uow)


def get_stats_service(uow: UnitOfWork = Depends(get_unit_of_work)) -> StatsService:
    return StatsService(uow)


def get_profile_service(uow: UnitOfWork = Depends(get_unit_of_work)) -> ProfileService:
    return ProfileService(uow)
