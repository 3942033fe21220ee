"""
Sleep session state machine.

Per user there are two states: *no open session* and *open session*
(a sleep row with a start time and no end time).  Transitions:

    fall_asleep     no open -> open       creates the row
    wake_up         open    -> no open    closes the row in place
    auto_complete   open    -> no open    best effort, on a non-sleep event
    legacy entry    no change             writes an already-closed row

Every method runs inside a transaction opened by the coordinator and
receives the already-locked open-session snapshot.  Nothing here
commits, so a failure anywhere rolls the whole transition back.

Validation order for closing transitions: interval sanity and hard
ceiling, then the duration verifier (confirmation), then the overlap
detector.  Auto-completion applies the same checks but logs instead of
raising, so the triggering event is always recorded.
"""

from __future__ import annotations

import datetime
import logging
from typing import Optional, Union

from app.core.exceptions import (InvalidDurationError, NoOpenSessionError, OverlapDetectedError,
                                 SessionAlreadyOpenError, )
from app.db.repositories.base import EventStore
from app.models.event import Event, EventType
from app.schemas.sleep import ConfirmationRequired
from app.sleep.overlap import find_overlap
from app.sleep.verifier import (DEFAULT_THRESHOLDS, DurationThresholds, check_duration, measure_session,
                                verify_duration, )

logger = logging.getLogger(__name__)

SleepOutcome = Union[Event, ConfirmationRequired]


class SleepSessionStateMachine:
    """Computes and applies sleep session transitions."""

    def __init__(self, thresholds: DurationThresholds = DEFAULT_THRESHOLDS):
        self.thresholds = thresholds

    # ------------------------------------------------------------------
    # Explicit transitions
    # ------------------------------------------------------------------

    def fall_asleep(self, store: EventStore, open_session: Optional[Event], user_name: str,
                    at: datetime.datetime, ) -> Event:
        if open_session is not None:
            raise SessionAlreadyOpenError(user_name, open_session.sleep_start_time, open_session.id)

        event = store.create(Event(type=EventType.SLEEP.value, user_name=user_name, timestamp=at,
                                   sleep_start_time=at, sleep_end_time=None, amount=None, ))
        logger.info("Opened sleep session %s for %s at %s", event.id, user_name, at.isoformat())
        return event

    def wake_up(self, store: EventStore, open_session: Optional[Event], user_name: str, at: datetime.datetime,
                confirmed: bool = False, ) -> SleepOutcome:
        if open_session is None:
            raise NoOpenSessionError(user_name)

        start = open_session.sleep_start_time
        minutes = measure_session(start, at, self.thresholds)

        confirmation = check_duration(minutes, confirmed, self.thresholds)
        if confirmation is not None:
            logger.info("Wake-up for %s needs confirmation (%s, %d min)", user_name, confirmation.reason, minutes)
            return confirmation

        self._ensure_no_overlap(store, user_name, start, at, exclude_id=open_session.id)

        event = store.update(open_session.id, sleep_end_time=at, amount=minutes)
        logger.info("Closed sleep session %s for %s: %d min", event.id, user_name, minutes)
        return event

    def record_legacy_sleep(self, store: EventStore, user_name: str, start: datetime.datetime,
                            minutes: int, confirmed: bool = False, ) -> SleepOutcome:
        """Write a closed session from a start time and a duration."""
        confirmation = check_duration(minutes, confirmed, self.thresholds)
        if confirmation is not None:
            return confirmation

        end = start + datetime.timedelta(minutes=minutes)
        self._ensure_no_overlap(store, user_name, start, end)

        event = store.create(Event(type=EventType.SLEEP.value, user_name=user_name, timestamp=end,
                                   sleep_start_time=start, sleep_end_time=end, amount=minutes, ))
        logger.info("Recorded sleep %s for %s: %d min ending %s", event.id, user_name, minutes, end.isoformat())
        return event

    def amend_sleep(self, store: EventStore, event: Event, start: datetime.datetime, minutes: int) -> Event:
        """Re-time a closed sleep event.

        Edits are explicit corrections, so the confirmation range does
        not apply; the hard bounds and the overlap check do.
        """
        verdict = verify_duration(minutes, self.thresholds)
        if verdict.status == "invalid":
            raise InvalidDurationError(verdict.message, duration_minutes=minutes)

        end = start + datetime.timedelta(minutes=minutes)
        self._ensure_no_overlap(store, event.user_name, start, end, exclude_id=event.id)
        return store.update(event.id, sleep_start_time=start, sleep_end_time=end, amount=minutes, timestamp=start)

    # ------------------------------------------------------------------
    # Auto-completion
    # ------------------------------------------------------------------

    def auto_complete(self, store: EventStore, open_session: Optional[Event], at: datetime.datetime,
                      trigger: str) -> Optional[Event]:
        """Close *open_session* at *at* because a *trigger* event arrived.

        Returns the closed event, or ``None`` if there was nothing to
        close or the close was skipped.  Validation failures are logged
        and leave the session open; they never propagate.
        """
        if open_session is None:
            return None

        user_name = open_session.user_name
        start = open_session.sleep_start_time
        try:
            minutes = measure_session(start, at, self.thresholds)
            verdict = verify_duration(minutes, self.thresholds)
            if verdict.status == "invalid":
                raise InvalidDurationError(verdict.message, duration_minutes=minutes)
            self._ensure_no_overlap(store, user_name, start, at, exclude_id=open_session.id)
        except (InvalidDurationError, OverlapDetectedError) as e:
            logger.warning("Auto-completion of sleep %s (by %s) with %s event at %s skipped: %s", open_session.id,
                           user_name, trigger, at.isoformat(), e.message)
            return None

        if verdict.status == "needs_confirmation":
            logger.warning("Auto-completed sleep event %s has unusual duration: %d minutes (%s)", open_session.id,
                           minutes, verdict.reason)

        event = store.update(open_session.id, sleep_end_time=at, amount=minutes)
        logger.info("Auto-completed sleep event %s (by %s) with %s event at %s", event.id, user_name, trigger,
                    at.isoformat())
        return event

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _ensure_no_overlap(store: EventStore, user_name: str, start: datetime.datetime, end: datetime.datetime,
                           exclude_id: Optional[int] = None, ) -> None:
        sessions = store.list_closed_sleep_sessions(user_name, exclude_id=exclude_id)
        conflict = find_overlap(start, end, sessions)
        if conflict is not None:
            raise OverlapDetectedError(user_name, start, end, conflicting_id=conflict.id)
