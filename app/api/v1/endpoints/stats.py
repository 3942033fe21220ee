"""Statistics endpoints."""

from fastapi import APIRouter, Depends

from app.api.dependencies import get_stats_service
from app.schemas.stats import TodayStats
from app.services.stats_service import StatsService

router = APIRouter()


@router.get("/today", summary="Event counts and totals for today.", response_model=TodayStats, )
def today_stats(service: StatsService = Depends(get_stats_service)):
    return service.today()
