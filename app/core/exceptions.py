"""
Domain exceptions.

Every failure that crosses the service boundary is one of these.  The
HTTP layer maps them to status codes in :mod:`app.main`; nothing below
the API knows about HTTP.
"""

from __future__ import annotations

import datetime
from typing import Optional


class TrackerError(Exception):
    """Base exception for all tracker errors."""

    code: str = "TRACKER_ERROR"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class EventValidationError(TrackerError):
    """Raised when input is malformed or out of range.  Never retried."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: str | None = None):
        details = {}
        if field:
            details["field"] = field
        super().__init__(message, details)
        self.field = field


class InvalidDurationError(EventValidationError):
    """Raised when a sleep duration is outside the hard bounds.

    Confirmation cannot override this.
    """

    code = "INVALID_DURATION"

    def __init__(self, message: str, duration_minutes: Optional[int] = None):
        super().__init__(message, field="duration")
        self.duration_minutes = duration_minutes
        if duration_minutes is not None:
            self.details["duration_minutes"] = duration_minutes


class OverlapDetectedError(TrackerError):
    """Raised when a sleep interval would intersect another closed session."""

    code = "OVERLAP_DETECTED"

    def __init__(self, user_name: str, start: datetime.datetime, end: datetime.datetime,
                 conflicting_id: Optional[int] = None):
        details = {"user_name": user_name, "start": start.isoformat(), "end": end.isoformat()}
        if conflicting_id is not None:
            details["conflicting_event_id"] = conflicting_id
        super().__init__(
            f"Sleep from {start.isoformat()} to {end.isoformat()} overlaps with existing sleep session"
            + (f" {conflicting_id}" if conflicting_id is not None else ""),
            details,
        )
        self.user_name = user_name
        self.conflicting_id = conflicting_id


class SessionAlreadyOpenError(TrackerError):
    """Raised by fall_asleep when the user already has an open session."""

    code = "SESSION_ALREADY_OPEN"

    def __init__(self, user_name: str, started_at: datetime.datetime, event_id: Optional[int] = None):
        super().__init__(
            f"Cannot start new sleep session. User {user_name} already has an incomplete "
            f"sleep session (started at {started_at.isoformat()})",
            {"user_name": user_name, "started_at": started_at.isoformat(), "event_id": event_id},
        )
        self.user_name = user_name
        self.started_at = started_at
        self.event_id = event_id


class NoOpenSessionError(TrackerError):
    """Raised by wake_up when there is nothing to close."""

    code = "NO_OPEN_SESSION"

    def __init__(self, user_name: str):
        super().__init__(f"No fall asleep event found for {user_name}", {"user_name": user_name})
        self.user_name = user_name


class ConcurrentUpdateError(TrackerError):
    """Raised when a commit loses a race against another writer.

    Not retried automatically: it signals a real conflict.
    """

    code = "CONCURRENT_UPDATE"

    def __init__(self, message: str = "Sleep session was updated by another request",
                 cause: Exception | None = None):
        details = {}
        if cause:
            details["cause"] = str(cause)
        super().__init__(message, details)
        self.cause = cause


class TransactionError(TrackerError):
    """Raised when the store fails a transaction.

    ``transient`` marks serialization/deadlock/lock-timeout failures
    that the coordinator may retry.
    """

    code = "TRANSACTION_ERROR"

    def __init__(self, message: str, transient: bool = False, cause: Exception | None = None):
        details: dict = {"transient": transient}
        if cause:
            details["cause"] = str(cause)
        super().__init__(message, details)
        self.transient = transient
        self.cause = cause


class EventNotFoundError(TrackerError):
    """Raised when an event id does not exist."""

    code = "EVENT_NOT_FOUND"

    def __init__(self, event_id: int):
        super().__init__(f"Event not found: {event_id}", {"event_id": event_id})
        self.event_id = event_id
