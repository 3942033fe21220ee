"""
Sleep session schemas.

:class:`ConfirmationRequired` is a distinguished *outcome*, not an
error: operations return it instead of an event when the duration is
unusual and the caller has not confirmed it.
"""

import datetime
from typing import Literal

from pydantic import BaseModel, Field


class ConfirmationRequired(BaseModel):
    """The operation was not applied; re-invoke with ``confirmed=True``."""

    requires_confirmation: Literal[True] = True
    reason: Literal["too_short", "too_long"]
    duration_minutes: int
    message: str


class ActiveSleepSession(BaseModel):
    """An open sleep session with its elapsed time."""

    id: int
    user_name: str
    start_time: datetime.datetime
    elapsed_minutes: int = Field(..., ge=0)
    elapsed_formatted: str


class ActiveSleepResponse(BaseModel):
    has_active_sleep: bool
    sessions: list[ActiveSleepSession]
