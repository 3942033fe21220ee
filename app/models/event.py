"""
Event database model.

One row per logged care event.  Sleep rows additionally carry
``sleep_start_time`` / ``sleep_end_time``; a sleep row with a start
and no end is the user's *open session*.
"""

import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, Index, text
from sqlmodel import Field, SQLModel

from app.core.clock import utcnow

# Stored datetimes are naive UTC, see app.core.clock
NAIVE_UTC = DateTime(timezone=False)

_OPEN_SLEEP_PREDICATE = text("type = 'sleep' AND sleep_start_time IS NOT NULL AND sleep_end_time IS NULL")


class EventType(str, Enum):
    MILK = "milk"
    POO = "poo"
    DIAPER = "diaper"
    BATH = "bath"
    SLEEP = "sleep"


class Event(SQLModel, table=True):
    """A single care event.

    At most one open sleep row per user is enforced by the partial
    unique index ``uq_open_sleep_per_user``; concurrent writers that
    slip past the row lock fail at flush time instead of leaving two
    open sessions behind.
    """

    __tablename__ = "baby_events"
    __table_args__ = (
        Index("uq_open_sleep_per_user", "user_name", unique=True, postgresql_where=_OPEN_SLEEP_PREDICATE,
              sqlite_where=_OPEN_SLEEP_PREDICATE, ),
        Index("ix_baby_events_user_type", "user_name", "type"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    type: str = Field(nullable=False, max_length=20, index=True)
    user_name: str = Field(nullable=False, max_length=50, foreign_key="caregivers.name")

    # Milk ml, or sleep minutes once the session is closed
    amount: Optional[int] = Field(default=None)
    subtype: Optional[str] = Field(default=None, max_length=20)

    # Canonical ordering time
    timestamp: datetime.datetime = Field(default_factory=utcnow, nullable=False, index=True, sa_type=NAIVE_UTC)

    sleep_start_time: Optional[datetime.datetime] = Field(default=None, sa_type=NAIVE_UTC)
    sleep_end_time: Optional[datetime.datetime] = Field(default=None, sa_type=NAIVE_UTC)

    # Timestamps
    created_at: datetime.datetime = Field(default_factory=utcnow, sa_type=NAIVE_UTC)
    updated_at: datetime.datetime = Field(default_factory=utcnow, sa_type=NAIVE_UTC)

    @property
    def is_open_session(self) -> bool:
        return (self.type == EventType.SLEEP.value and self.sleep_start_time is not None
                and self.sleep_end_time is None)

    @property
    def is_closed_session(self) -> bool:
        return (self.type == EventType.SLEEP.value and self.sleep_start_time is not None
                and self.sleep_end_time is not None)
