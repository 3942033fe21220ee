"""
Event endpoints.

Logging and correction of care events.  Sleep transitions are selected
by ``sleep_action``; unusual sleep durations come back as a 422 with
``requires_confirmation`` until the client re-sends with
``confirmed: true``.
"""

import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from app.api.dependencies import get_event_service
from app.core.exceptions import EventValidationError
from app.models.event import EventType
from app.schemas.event import EventCreate, EventResponse, EventUpdate
from app.schemas.sleep import ConfirmationRequired
from app.services.event_service import EventService

router = APIRouter()


@router.post("", summary="Log an event.", response_model=EventResponse, status_code=status.HTTP_201_CREATED,
             responses={ status.HTTP_422_UNPROCESSABLE_ENTITY: { "model": ConfirmationRequired } }, )
def create_event(data: EventCreate, service: EventService = Depends(get_event_service), ):
    if data.type != EventType.SLEEP:
        return service.record_foreign_event(data.user_name, data.type, data.timestamp, data.amount, data.subtype)

    if data.sleep_action == "fall_asleep":
        outcome = service.fall_asleep(data.user_name, data.timestamp)
    elif data.sleep_action == "wake_up":
        outcome = service.wake_up(data.user_name, data.timestamp, confirmed=data.confirmed)
    else:
        if data.timestamp is None or data.amount is None:
            raise EventValidationError("Sleep entries need a start timestamp and a duration in minutes",
                                       field="amount")
        outcome = service.record_legacy_sleep(data.user_name, data.timestamp, data.amount,
                                              confirmed=data.confirmed)

    if isinstance(outcome, ConfirmationRequired):
        return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content=outcome.model_dump())
    return outcome


@router.get("", summary="List events, newest first.", response_model=list[EventResponse], )
def list_events(type: Optional[EventType] = Query(None, description="Only events of this type"),
                start: Optional[datetime.datetime] = Query(None, description="Range start (inclusive)"),
                end: Optional[datetime.datetime] = Query(None, description="Range end (inclusive)"),
                service: EventService = Depends(get_event_service), ):
    return service.list_events(type, start, end)


@router.get("/{event_id}", summary="Get an event.", response_model=EventResponse, )
def get_event(event_id: int, service: EventService = Depends(get_event_service)):
    return service.get_event(event_id)


@router.put("/{event_id}", summary="Correct an event.", response_model=EventResponse, )
def update_event(event_id: int, data: EventUpdate, service: EventService = Depends(get_event_service)):
    return service.update_event(event_id, data)


@router.delete("/{event_id}", summary="Delete an event.", status_code=status.HTTP_204_NO_CONTENT, )
def delete_event(event_id: int, service: EventService = Depends(get_event_service)):
    service.delete_event(event_id)
