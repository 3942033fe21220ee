"""Pydantic schemas for request/response validation."""

from app.schemas.event import EventCreate, EventResponse, EventUpdate
from app.schemas.profile import (BabyAge, BabyProfileCreate, BabyProfileRead, BabyProfileResponse, MeasurementCreate,
                                 MeasurementRead, )
from app.schemas.sleep import ActiveSleepResponse, ActiveSleepSession, ConfirmationRequired
from app.schemas.stats import TodayStats

__all__ = [
    "EventCreate",
    "EventResponse",
    "EventUpdate",
    "BabyAge",
    "BabyProfileCreate",
    "BabyProfileRead",
    "BabyProfileResponse",
    "MeasurementCreate",
    "MeasurementRead",
    "ActiveSleepResponse",
    "ActiveSleepSession",
    "ConfirmationRequired",
    "TodayStats",
]
