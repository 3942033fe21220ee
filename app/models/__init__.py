"""SQLModel database models."""

from app.models.caregiver import Caregiver
from app.models.event import Event, EventType
from app.models.profile import BabyMeasurement, BabyProfile

__all__ = [
    "Caregiver",
    "Event",
    "EventType",
    "BabyMeasurement",
    "BabyProfile",
]
