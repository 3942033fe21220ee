"""
Statistics service.

Aggregates today's events.  "Today" is the calendar day in
``HOME_TIMEZONE``, converted to the naive-UTC range the store uses.
"""

import datetime
from zoneinfo import ZoneInfo

from app.core.clock import Clock, utcnow
from app.core.config import Settings, settings as default_settings
from app.db.repositories.base import UnitOfWork
from app.models.event import Event, EventType
from app.schemas.stats import TodayStats
from app.sleep.coordinator import TransactionCoordinator


def day_bounds(now_utc: datetime.datetime, tz_name: str) -> tuple[datetime.date, datetime.datetime,
                                                                   datetime.datetime]:
    """Return ``(local_date, start_utc, end_utc)`` for the local day containing *now_utc*.

    The end bound is the last microsecond of the day, for inclusive filtering.
    """
    tz = ZoneInfo(tz_name)
    local_now = now_utc.replace(tzinfo=datetime.timezone.utc).astimezone(tz)
    local_start = datetime.datetime.combine(local_now.date(), datetime.time.min, tzinfo=tz)
    local_end = local_start + datetime.timedelta(days=1)

    def to_utc(value: datetime.datetime) -> datetime.datetime:
        return value.astimezone(datetime.timezone.utc).replace(tzinfo=None)

    return local_now.date(), to_utc(local_start), to_utc(local_end) - datetime.timedelta(microseconds=1)


def summarize(events: list[Event], date: datetime.date) -> TodayStats:
    counts: dict[str, int] = {event_type.value: 0 for event_type in EventType}
    total_milk = 0
    total_sleep = 0
    for event in events:
        counts[event.type] = counts.get(event.type, 0) + 1
        if event.type == EventType.MILK.value and event.amount:
            total_milk += event.amount
        if event.type == EventType.SLEEP.value and event.amount:
            total_sleep += event.amount
    return TodayStats(date=date, counts=counts, total_milk_ml=total_milk, total_sleep_minutes=total_sleep,
                      total_sleep_hours=round(total_sleep / 60, 1), )


class StatsService:
    """Service for derived statistics."""

    def __init__(self, unit_of_work: UnitOfWork, config: Settings = default_settings, clock: Clock = utcnow):
        self.config = config
        self.clock = clock
        self.coordinator = TransactionCoordinator(unit_of_work, max_attempts=config.TRANSACTION_MAX_ATTEMPTS,
                                                  backoff_seconds=config.TRANSACTION_BACKOFF_SECONDS, )

    def today(self) -> TodayStats:
        date, start, end = day_bounds(self.clock(), self.config.HOME_TIMEZONE)
        events = self.coordinator.run(lambda store: store.list_events(start=start, end=end))
        return summarize(events, date)
