"""Daily statistics schemas."""

import datetime

from pydantic import BaseModel, Field


class TodayStats(BaseModel):
    """Aggregates for the current day in the home timezone."""

    date: datetime.date
    counts: dict[str, int] = Field(default_factory=dict, description="Number of events per type")
    total_milk_ml: int = 0
    total_sleep_minutes: int = 0
    total_sleep_hours: float = 0.0
