"""
Caregiver database model.

One row per known caregiver.  Sleep transitions lock this row
(``SELECT ... FOR UPDATE``) so that concurrent operations for the same
caregiver serialize even when no open sleep row exists yet.
"""

from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel

from app.core.clock import utcnow
from app.models.event import NAIVE_UTC


class Caregiver(SQLModel, table=True):
    __tablename__ = "caregivers"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(unique=True, index=True, max_length=50, nullable=False)

    created_at: datetime = Field(default_factory=utcnow, sa_type=NAIVE_UTC)
