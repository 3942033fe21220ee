"""
Event repository.

SQLModel implementation of :class:`~app.db.repositories.base.EventStore`.
Operates inside a transaction owned by
:class:`~app.db.unit_of_work.SqlUnitOfWork`: it flushes but never commits.
"""

import datetime
from typing import Any, Optional

from sqlmodel import Session, select

from app.core.clock import utcnow
from app.core.exceptions import EventNotFoundError
from app.db.repositories.profile import ProfileRepository
from app.models.caregiver import Caregiver
from app.models.event import Event, EventType


class EventRepository:
    """Repository for Event database operations."""

    def __init__(self, session: Session):
        self.session = session
        self.profiles = ProfileRepository(session)

    # ------------------------------------------------------------------
    # Sleep session lookups
    # ------------------------------------------------------------------

    def get_open_session_for_update(self, user_name: str) -> Optional[Event]:
        """Lock the caregiver row, then the open sleep row (if any).

        Locking the caregiver row first serializes fall_asleep attempts
        that find no open row to lock.
        """
        caregiver = self.session.exec(select(Caregiver).where(Caregiver.name == user_name).with_for_update()).first()
        if caregiver is None:
            self.session.add(Caregiver(name=user_name))
            self.session.flush()

        statement = self._open_session_query(user_name).with_for_update()
        return self.session.exec(statement).first()

    def get_open_session(self, user_name: str) -> Optional[Event]:
        return self.session.exec(self._open_session_query(user_name)).first()

    def list_open_sessions(self) -> list[Event]:
        statement = (select(Event).where(Event.type == EventType.SLEEP.value, Event.sleep_start_time.is_not(None),
                                         Event.sleep_end_time.is_(None), ).order_by(Event.user_name))
        return list(self.session.exec(statement).all())

    def list_closed_sleep_sessions(self, user_name: str, exclude_id: Optional[int] = None) -> list[Event]:
        statement = select(Event).where(Event.type == EventType.SLEEP.value, Event.user_name == user_name,
                                        Event.sleep_start_time.is_not(None), Event.sleep_end_time.is_not(None), )
        if exclude_id is not None:
            statement = statement.where(Event.id != exclude_id)
        return list(self.session.exec(statement.order_by(Event.sleep_start_time)).all())

    # ------------------------------------------------------------------
    # Generic reads
    # ------------------------------------------------------------------

    def get_by_id(self, event_id: int) -> Optional[Event]:
        return self.session.get(Event, event_id)

    def list_events(self, event_type: Optional[str] = None, start: Optional[datetime.datetime] = None,
                    end: Optional[datetime.datetime] = None, ) -> list[Event]:
        statement = select(Event)
        if event_type is not None:
            statement = statement.where(Event.type == event_type)
        if start is not None:
            statement = statement.where(Event.timestamp >= start)
        if end is not None:
            statement = statement.where(Event.timestamp <= end)
        return list(self.session.exec(statement.order_by(Event.timestamp.desc(), Event.id.desc())).all())

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def create(self, event: Event) -> Event:
        self.session.add(event)
        self.session.flush()
        self.session.refresh(event)
        return event

    def update(self, event_id: int, **fields: Any) -> Event:
        event = self.get_by_id(event_id)
        if event is None:
            raise EventNotFoundError(event_id)
        for name, value in fields.items():
            setattr(event, name, value)
        event.updated_at = utcnow()
        self.session.add(event)
        self.session.flush()
        self.session.refresh(event)
        return event

    def delete(self, event_id: int) -> bool:
        event = self.get_by_id(event_id)
        if event:
            self.session.delete(event)
            self.session.flush()
            return True
        return False

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _open_session_query(user_name: str):
        return (select(Event).where(Event.type == EventType.SLEEP.value, Event.user_name == user_name,
                                    Event.sleep_start_time.is_not(None), Event.sleep_end_time.is_(None), ).order_by(
            Event.timestamp.desc()))
