"""
Record store interface.

The sleep core talks to storage only through these protocols.  Two
implementations exist: :class:`~app.db.repositories.event.EventRepository`
on top of SQLModel, and :class:`~app.db.repositories.memory.InMemoryUnitOfWork`
for tests and database-less runs.
"""

from __future__ import annotations

import datetime
from contextlib import AbstractContextManager
from typing import Any, Callable, Optional, Protocol, TypeVar

from app.models.event import Event
from app.models.profile import BabyMeasurement, BabyProfile

T = TypeVar("T")


class ProfileStore(Protocol):
    """Baby profile and measurement operations, bound to the same transaction as the events."""

    def get_profile(self) -> Optional[BabyProfile]:
        ...

    def save_profile(self, name: str, date_of_birth: datetime.date) -> BabyProfile:
        """Create the profile, or overwrite the existing one."""
        ...

    def add_measurement(self, measurement: BabyMeasurement) -> BabyMeasurement:
        ...

    def list_measurements(self) -> list[BabyMeasurement]:
        """Measurements ordered newest first."""
        ...


class EventStore(Protocol):
    """Event operations bound to a single open transaction.

    Nothing here commits; the owning :class:`UnitOfWork` does.
    """

    profiles: ProfileStore

    def get_open_session_for_update(self, user_name: str) -> Optional[Event]:
        """Lock the user's sleep resource and return the open session, if any.

        The lock is held until the enclosing transaction ends.
        """
        ...

    def get_open_session(self, user_name: str) -> Optional[Event]:
        ...

    def get_by_id(self, event_id: int) -> Optional[Event]:
        ...

    def create(self, event: Event) -> Event:
        ...

    def update(self, event_id: int, **fields: Any) -> Event:
        ...

    def delete(self, event_id: int) -> bool:
        ...

    def list_closed_sleep_sessions(self, user_name: str, exclude_id: Optional[int] = None) -> list[Event]:
        ...

    def list_open_sessions(self) -> list[Event]:
        ...

    def list_events(self, event_type: Optional[str] = None, start: Optional[datetime.datetime] = None,
                    end: Optional[datetime.datetime] = None, ) -> list[Event]:
        """Events ordered newest first, optionally filtered by type and timestamp range (inclusive)."""
        ...


class UnitOfWork(Protocol):
    """Factory for transactions against one backing store."""

    def transaction(self) -> AbstractContextManager[EventStore]:
        """Open a transaction.

        Commits when the block exits normally and rolls back on any
        exception.  Constraint violations surface as
        :class:`~app.core.exceptions.ConcurrentUpdateError`; store
        failures as :class:`~app.core.exceptions.TransactionError`.
        """
        ...

    def run_transaction(self, fn: Callable[[EventStore], T]) -> T:
        ...
