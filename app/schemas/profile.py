"""Baby profile and measurement schemas."""

import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class BabyProfileCreate(BaseModel):
    """Schema for creating or replacing the baby profile."""

    name: str = Field(..., min_length=1, max_length=100)
    date_of_birth: datetime.date


class BabyProfileRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    date_of_birth: datetime.date
    created_at: datetime.datetime
    updated_at: datetime.datetime


class MeasurementCreate(BaseModel):
    """Schema for recording a growth measurement.  At least one value is required."""

    measurement_date: datetime.date
    weight_kg: Optional[float] = Field(None, description="Weight in kg (1.5 - 20)")
    height_cm: Optional[float] = Field(None, description="Height in cm (40 - 100)")
    head_circumference_cm: Optional[float] = Field(None, description="Head circumference in cm (30 - 55)")
    notes: Optional[str] = Field(None, max_length=500)


class MeasurementRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    measurement_date: datetime.date
    weight_kg: Optional[float]
    height_cm: Optional[float]
    head_circumference_cm: Optional[float]
    notes: Optional[str]
    created_at: datetime.datetime


class BabyAge(BaseModel):
    weeks: int
    days: int
    total_days: int


class BabyProfileResponse(BaseModel):
    """The profile with the latest measurement and the age today."""

    profile: Optional[BabyProfileRead] = None
    latest_measurement: Optional[MeasurementRead] = None
    age: Optional[BabyAge] = None
