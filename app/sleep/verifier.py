"""
Sleep duration verification.

Classifies a candidate duration (minutes) into one of three verdicts:

    invalid             <= 0 or > hard maximum (12h)   never accepted
    needs_confirmation  < 10 (too_short), > 300 (too_long)
    ok                  everything else

A caller-supplied ``confirmed`` flag skips the confirmation branch but
never the invalid branch.
"""

from __future__ import annotations

import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from app.core.exceptions import InvalidDurationError
from app.schemas.sleep import ConfirmationRequired

VerdictStatus = Literal["ok", "needs_confirmation", "invalid"]
VerdictReason = Literal["too_short", "too_long", "non_positive", "exceeds_maximum"]


class DurationThresholds(BaseModel):
    """Duration bounds in minutes."""

    min_confirm: int = Field(default=10, ge=1)
    max_unconfirmed: int = Field(default=300, ge=1)
    hard_max: int = Field(default=720, ge=1)

    @classmethod
    def from_settings(cls, settings) -> "DurationThresholds":
        return cls(min_confirm=settings.SLEEP_MIN_CONFIRM_MINUTES,
                   max_unconfirmed=settings.SLEEP_MAX_UNCONFIRMED_MINUTES, hard_max=settings.SLEEP_HARD_MAX_MINUTES, )


DEFAULT_THRESHOLDS = DurationThresholds()


class DurationVerdict(BaseModel):
    status: VerdictStatus
    reason: Optional[VerdictReason] = None
    duration_minutes: int
    message: Optional[str] = None

    @property
    def is_ok(self) -> bool:
        return self.status == "ok"


def _format_hours(minutes: int) -> str:
    return f"{round(minutes / 60, 1)} hours"


def verify_duration(minutes: int, thresholds: DurationThresholds = DEFAULT_THRESHOLDS) -> DurationVerdict:
    """Classify *minutes*.  Pure function."""
    if minutes <= 0:
        return DurationVerdict(status="invalid", reason="non_positive", duration_minutes=minutes,
                               message="Sleep duration must be at least 1 minute", )
    if minutes > thresholds.hard_max:
        return DurationVerdict(status="invalid", reason="exceeds_maximum", duration_minutes=minutes,
                               message=f"Sleep duration cannot exceed {_format_hours(thresholds.hard_max)}", )
    if minutes < thresholds.min_confirm:
        return DurationVerdict(status="needs_confirmation", reason="too_short", duration_minutes=minutes,
                               message=(f"Sleep duration is only {minutes} minutes. This is very short for a "
                                        f"sleep session. Are you sure this is correct?"), )
    if minutes > thresholds.max_unconfirmed:
        return DurationVerdict(status="needs_confirmation", reason="too_long", duration_minutes=minutes,
                               message=(f"Sleep duration is {_format_hours(minutes)}. This is quite long for a "
                                        f"sleep session. Are you sure this is correct?"), )
    return DurationVerdict(status="ok", duration_minutes=minutes)


def duration_minutes(start: datetime.datetime, end: datetime.datetime) -> int:
    """Minute-rounded length of ``[start, end)`` with a floor of 1."""
    minutes = round((end - start).total_seconds() / 60)
    return minutes if minutes > 0 else 1


def measure_session(start: datetime.datetime, end: datetime.datetime,
                    thresholds: DurationThresholds = DEFAULT_THRESHOLDS) -> int:
    """Return the duration of ``[start, end)`` in minutes.

    Raises :class:`InvalidDurationError` if the end is not after the
    start or the gap exceeds the hard ceiling.
    """
    if end <= start:
        raise InvalidDurationError("Sleep end time must be after sleep start time")
    if end - start > datetime.timedelta(minutes=thresholds.hard_max):
        raise InvalidDurationError(f"Sleep duration cannot exceed {_format_hours(thresholds.hard_max)}",
                                   duration_minutes=duration_minutes(start, end), )
    return duration_minutes(start, end)


def check_duration(minutes: int, confirmed: bool = False,
                   thresholds: DurationThresholds = DEFAULT_THRESHOLDS) -> Optional[ConfirmationRequired]:
    """Apply the verifier with the caller's confirmation.

    Returns ``None`` when the duration may be written, a
    :class:`ConfirmationRequired` outcome when the caller must confirm,
    and raises :class:`InvalidDurationError` for hard-invalid values.
    """
    verdict = verify_duration(minutes, thresholds)
    if verdict.status == "invalid":
        raise InvalidDurationError(verdict.message, duration_minutes=minutes)
    if verdict.status == "needs_confirmation" and not confirmed:
        return ConfirmationRequired(reason=verdict.reason, duration_minutes=minutes, message=verdict.message)
    return None
