"""Sleep session endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.api.dependencies import get_event_service
from app.schemas.sleep import ActiveSleepResponse
from app.services.event_service import EventService

router = APIRouter()


@router.get("/active", summary="Open sleep sessions with elapsed time.", response_model=ActiveSleepResponse, )
def active_sleep(user_name: Optional[str] = Query(None, description="Only this caregiver's session"),
                 service: EventService = Depends(get_event_service), ):
    sessions = service.active_sessions(user_name)
    return ActiveSleepResponse(has_active_sleep=bool(sessions), sessions=sessions)
