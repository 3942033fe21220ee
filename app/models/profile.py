"""
Baby profile and growth measurement models.

The tracker follows a single child: ``baby_profile`` holds at most one
row, ``baby_measurements`` one row per weigh-in.
"""

import datetime
from typing import Optional

from sqlmodel import Field, SQLModel

from app.core.clock import utcnow
from app.models.event import NAIVE_UTC


class BabyProfile(SQLModel, table=True):
    __tablename__ = "baby_profile"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(nullable=False, max_length=100)
    date_of_birth: datetime.date = Field(nullable=False)

    created_at: datetime.datetime = Field(default_factory=utcnow, sa_type=NAIVE_UTC)
    updated_at: datetime.datetime = Field(default_factory=utcnow, sa_type=NAIVE_UTC)


class BabyMeasurement(SQLModel, table=True):
    __tablename__ = "baby_measurements"

    id: Optional[int] = Field(default=None, primary_key=True)
    measurement_date: datetime.date = Field(nullable=False, index=True)

    weight_kg: Optional[float] = Field(default=None)
    height_cm: Optional[float] = Field(default=None)
    head_circumference_cm: Optional[float] = Field(default=None)
    notes: Optional[str] = Field(default=None, max_length=500)

    created_at: datetime.datetime = Field(default_factory=utcnow, sa_type=NAIVE_UTC)
