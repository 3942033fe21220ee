"""
Event API schemas.

A single create schema covers every event type; ``sleep_action``
selects the sleep transition (omitted for a one-shot sleep entry with
a duration in ``amount``).
"""

import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.event import EventType

SleepAction = Literal["fall_asleep", "wake_up"]


class EventCreate(BaseModel):
    """Schema for logging an event."""

    type: EventType = Field(..., description="Event type, e.g. 'milk' or 'sleep'")
    user_name: str = Field(..., max_length=50, description="Caregiver logging the event")
    timestamp: Optional[datetime.datetime] = Field(
        None, description="When the event happened (defaults to now). Start time for one-shot sleep entries."
    )
    amount: Optional[int] = Field(
        None, description="Milk volume in ml, or sleep duration in minutes for one-shot sleep entries"
    )
    subtype: Optional[str] = Field(None, max_length=20, description="Diaper subtype: pee, poo or both")
    sleep_action: Optional[SleepAction] = Field(None, description="Sleep transition to apply")
    confirmed: bool = Field(False, description="Accept an unusual sleep duration")


class EventUpdate(BaseModel):
    """Schema for correcting an event."""

    timestamp: Optional[datetime.datetime] = None
    amount: Optional[int] = None
    subtype: Optional[str] = Field(None, max_length=20)


class EventResponse(BaseModel):
    """Schema for an event in API responses."""

    id: int
    type: str
    user_name: str
    amount: Optional[int]
    subtype: Optional[str]
    timestamp: datetime.datetime
    sleep_start_time: Optional[datetime.datetime]
    sleep_end_time: Optional[datetime.datetime]
    created_at: datetime.datetime
    updated_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True)
