"""Test helpers shared across modules."""

import datetime

NOW = datetime.datetime(2026, 3, 1, 12, 0, 0)


def minutes_ago(minutes: float) -> datetime.datetime:
    return NOW - datetime.timedelta(minutes=minutes)
