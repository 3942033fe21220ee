"""
Sleep interval overlap detection.

Sessions are half-open intervals ``[start, end)``: two sessions that
merely touch (one ends exactly when the other starts) do not overlap.
Only closed sessions take part; the single open session per user is
guarded by the state machine instead.
"""

import datetime
from typing import Iterable, Optional

from app.models.event import Event


def intervals_overlap(start_a: datetime.datetime, end_a: datetime.datetime, start_b: datetime.datetime,
                      end_b: datetime.datetime, ) -> bool:
    return start_a < end_b and start_b < end_a


def find_overlap(start: datetime.datetime, end: datetime.datetime, sessions: Iterable[Event]) -> Optional[Event]:
    """Return the first closed session in *sessions* intersecting ``[start, end)``."""
    for session in sessions:
        if session.sleep_start_time is None or session.sleep_end_time is None:
            continue
        if intervals_overlap(start, end, session.sleep_start_time, session.sleep_end_time):
            return session
    return None


def overlaps(start: datetime.datetime, end: datetime.datetime, sessions: Iterable[Event]) -> bool:
    return find_overlap(start, end, sessions) is not None
