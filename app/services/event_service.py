"""
Event service.

The operation surface above the sleep core.  Validates caller input,
resolves timestamps, and runs every write through the
:class:`~app.sleep.coordinator.TransactionCoordinator` so that sleep
transitions are atomic per user.

Non-sleep events go through :meth:`EventService.record_foreign_event`,
which also tries to close the caregiver's stale open sleep session in
the same transaction.
"""

import datetime
import time
from typing import Callable, Optional

from app.core.clock import Clock, to_utc_naive, utcnow
from app.core.config import Settings, settings as default_settings
from app.core.exceptions import EventNotFoundError, EventValidationError
from app.db.repositories.base import EventStore, UnitOfWork
from app.models.event import Event, EventType
from app.schemas.event import EventUpdate
from app.schemas.sleep import ActiveSleepSession
from app.sleep.coordinator import TransactionCoordinator
from app.sleep.state_machine import SleepOutcome, SleepSessionStateMachine
from app.sleep.verifier import DurationThresholds


class EventService:
    """Service for event logging and sleep session business logic."""

    def __init__(self, unit_of_work: UnitOfWork, config: Settings = default_settings, clock: Clock = utcnow,
                 sleep: Callable[[float], None] = time.sleep, ):
        self.config = config
        self.clock = clock
        self.coordinator = TransactionCoordinator(unit_of_work, max_attempts=config.TRANSACTION_MAX_ATTEMPTS,
                                                  backoff_seconds=config.TRANSACTION_BACKOFF_SECONDS, sleep=sleep, )
        self.state_machine = SleepSessionStateMachine(DurationThresholds.from_settings(config))

    # ------------------------------------------------------------------
    # Sleep transitions
    # ------------------------------------------------------------------

    def fall_asleep(self, user_name: str, timestamp: Optional[datetime.datetime] = None) -> Event:
        self._validate_user(user_name)
        at = self._resolve_timestamp(timestamp)
        return self.coordinator.run_exclusive(user_name, lambda store, open_session: self.state_machine.fall_asleep(
            store, open_session, user_name, at))

    def wake_up(self, user_name: str, timestamp: Optional[datetime.datetime] = None,
                confirmed: bool = False, ) -> SleepOutcome:
        self._validate_user(user_name)
        at = self._resolve_timestamp(timestamp)
        return self.coordinator.run_exclusive(user_name, lambda store, open_session: self.state_machine.wake_up(
            store, open_session, user_name, at, confirmed))

    def record_legacy_sleep(self, user_name: str, start: datetime.datetime, duration_minutes: int,
                            confirmed: bool = False, ) -> SleepOutcome:
        self._validate_user(user_name)
        start = self._resolve_timestamp(start)
        self._ensure_not_future(start + datetime.timedelta(minutes=duration_minutes))
        return self.coordinator.run_exclusive(user_name, lambda store, _open: self.state_machine.record_legacy_sleep(
            store, user_name, start, duration_minutes, confirmed))

    # ------------------------------------------------------------------
    # Non-sleep events
    # ------------------------------------------------------------------

    def record_foreign_event(self, user_name: str, event_type: EventType,
                             timestamp: Optional[datetime.datetime] = None, amount: Optional[int] = None,
                             subtype: Optional[str] = None, ) -> Event:
        """Record a non-sleep event.

        If the caregiver has an open sleep session it is closed at the
        event's time, best effort: a session that cannot be closed
        cleanly stays open and the event is recorded anyway.
        """
        event_type = EventType(event_type)
        if event_type == EventType.SLEEP:
            raise EventValidationError("Sleep events must use fall_asleep, wake_up or a duration entry",
                                       field="type")
        self._validate_user(user_name)
        at = self._resolve_timestamp(timestamp)
        amount, subtype = self._validate_payload(event_type, amount, subtype)

        def record(store: EventStore, open_session: Optional[Event]) -> Event:
            self.state_machine.auto_complete(store, open_session, at, trigger=event_type.value)
            return store.create(Event(type=event_type.value, user_name=user_name, timestamp=at, amount=amount,
                                      subtype=subtype, ))

        return self.coordinator.run_exclusive(user_name, record)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_event(self, event_id: int) -> Event:
        event = self.coordinator.run(lambda store: store.get_by_id(event_id))
        if event is None:
            raise EventNotFoundError(event_id)
        return event

    def list_events(self, event_type: Optional[EventType] = None, start: Optional[datetime.datetime] = None,
                    end: Optional[datetime.datetime] = None, ) -> list[Event]:
        type_value = EventType(event_type).value if event_type is not None else None
        start = to_utc_naive(start) if start is not None else None
        end = to_utc_naive(end) if end is not None else None
        return self.coordinator.run(lambda store: store.list_events(type_value, start, end))

    def active_sessions(self, user_name: Optional[str] = None) -> list[ActiveSleepSession]:
        """Open sessions with elapsed time, for one caregiver or all of them."""
        if user_name is not None:
            self._validate_user(user_name)
            found = self.coordinator.run(lambda store: store.get_open_session(user_name))
            open_sessions = [found] if found is not None else []
        else:
            open_sessions = self.coordinator.run(lambda store: store.list_open_sessions())

        now = self.clock()
        sessions = []
        for event in open_sessions:
            elapsed = max(0, int((now - event.sleep_start_time).total_seconds() // 60))
            sessions.append(ActiveSleepSession(id=event.id, user_name=event.user_name,
                                               start_time=event.sleep_start_time, elapsed_minutes=elapsed,
                                               elapsed_formatted=_format_elapsed(elapsed), ))
        return sessions

    # ------------------------------------------------------------------
    # Corrections
    # ------------------------------------------------------------------

    def update_event(self, event_id: int, data: EventUpdate) -> Event:
        existing = self.get_event(event_id)
        timestamp = self._resolve_timestamp(data.timestamp) if data.timestamp is not None else None

        if existing.type == EventType.SLEEP.value:
            return self.coordinator.run_exclusive(existing.user_name,
                                                  lambda store, _open: self._amend_sleep(store, event_id, timestamp,
                                                                                         data.amount))

        amount, subtype = self._validate_payload(EventType(existing.type),
                                                 data.amount if data.amount is not None else existing.amount,
                                                 data.subtype if data.subtype is not None else existing.subtype, )
        fields = {"amount": amount, "subtype": subtype}
        if timestamp is not None:
            fields["timestamp"] = timestamp
        return self.coordinator.run(lambda store: store.update(event_id, **fields))

    def delete_event(self, event_id: int) -> None:
        if not self.coordinator.run(lambda store: store.delete(event_id)):
            raise EventNotFoundError(event_id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _amend_sleep(self, store: EventStore, event_id: int, timestamp: Optional[datetime.datetime],
                     amount: Optional[int], ) -> Event:
        event = store.get_by_id(event_id)
        if event is None:
            raise EventNotFoundError(event_id)

        start = timestamp or event.sleep_start_time or event.timestamp
        minutes = amount if amount is not None else event.amount
        if minutes is None:
            # Open session without a duration: only the start moves
            return store.update(event_id, sleep_start_time=start, timestamp=start)
        self._ensure_not_future(start + datetime.timedelta(minutes=minutes))
        return self.state_machine.amend_sleep(store, event, start, minutes)

    def _validate_user(self, user_name: str) -> None:
        if user_name not in self.config.ALLOWED_USERS:
            raise EventValidationError(
                f"Invalid user: {user_name}. Must be one of: {', '.join(self.config.ALLOWED_USERS)}",
                field="user_name", )

    def _resolve_timestamp(self, timestamp: Optional[datetime.datetime]) -> datetime.datetime:
        now = self.clock()
        if timestamp is None:
            return now

        value = to_utc_naive(timestamp)
        if value > now:
            raise EventValidationError("Event timestamp cannot be in the future", field="timestamp")
        if value < now - datetime.timedelta(days=self.config.TIMESTAMP_MAX_PAST_DAYS):
            raise EventValidationError(
                f"Event timestamp cannot be more than {self.config.TIMESTAMP_MAX_PAST_DAYS} days in the past",
                field="timestamp", )
        return value

    def _ensure_not_future(self, end: datetime.datetime) -> None:
        if end > self.clock():
            raise EventValidationError("Sleep cannot end in the future", field="amount")

    def _validate_payload(self, event_type: EventType, amount: Optional[int],
                          subtype: Optional[str], ) -> tuple[Optional[int], Optional[str]]:
        if event_type == EventType.MILK:
            if amount is None or amount <= 0 or amount > self.config.MAX_MILK_AMOUNT:
                raise EventValidationError(f"Milk amount must be between 1 and {self.config.MAX_MILK_AMOUNT} ml",
                                           field="amount", )
            return amount, None

        if event_type == EventType.DIAPER:
            if subtype not in self.config.ALLOWED_DIAPER_SUBTYPES:
                raise EventValidationError(
                    f"Diaper subtype is required ({', '.join(self.config.ALLOWED_DIAPER_SUBTYPES)})",
                    field="subtype", )
            return None, subtype

        if event_type == EventType.POO:
            return None, "poo"

        return None, None


def _format_elapsed(minutes: int) -> str:
    if minutes >= 60:
        return f"{minutes // 60}h {minutes % 60}m"
    return f"{minutes}m"
