"""
Date calculation and manipulation service.
Handles the configured day boundary, date keys and day windows.

All instants in the database are naive UTC datetimes. A "day" is a calendar
date in the configured timezone, starting at the configured day start time.
"""
from datetime import datetime, date, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from selfos import config


def utc_now() -> datetime:
    """Current instant as a naive UTC datetime"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def date_key(day: date) -> str:
    """Canonical YYYY-MM-DD key for per-day records and heatmap lookups"""
    return day.isoformat()


class DateService:
    """Service for day-boundary operations"""

    def __init__(self, tz_name: Optional[str] = None, day_start: Optional[str] = None):
        self.tz = ZoneInfo(tz_name or config.TIMEZONE)
        self.day_start = self.parse_time(day_start or config.DAY_START)

    @staticmethod
    def parse_time(time_str: str) -> time:
        """
        Parse time string into a time of day.

        Accepts "HH:MM" or "HHMM".

        Raises:
            ValueError: If time string is invalid
        """
        t_str = time_str.replace(":", "").zfill(4)
        return time(int(t_str[:2]), int(t_str[2:]))

    def to_local(self, instant: datetime) -> datetime:
        """Convert an instant (naive UTC or aware) to the configured timezone"""
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        return instant.astimezone(self.tz)

    def to_utc(self, local: datetime) -> datetime:
        """Convert a local wall-clock datetime to a naive UTC instant"""
        if local.tzinfo is None:
            local = local.replace(tzinfo=self.tz)
        return local.astimezone(timezone.utc).replace(tzinfo=None)

    def day_of(self, instant: datetime) -> date:
        """
        Get the day an instant belongs to.

        Instants before the day start time still belong to the previous day.
        """
        local = self.to_local(instant)
        offset = timedelta(hours=self.day_start.hour, minutes=self.day_start.minute)
        return (local.replace(tzinfo=None) - offset).date()

    def today(self, now: Optional[datetime] = None) -> date:
        """Get the current day"""
        return self.day_of(now or utc_now())

    def day_start_instant(self, day: date) -> datetime:
        """Start of a day as a naive UTC instant"""
        return self.to_utc(datetime.combine(day, self.day_start))

    def start_of_day(self, instant: datetime) -> datetime:
        """Start of the day containing an instant, as a naive UTC instant"""
        return self.day_start_instant(self.day_of(instant))

    def get_day_range(self, day: date) -> tuple[datetime, datetime]:
        """
        Get the [day_start, day_end) window of a day as naive UTC instants.

        Computed from both local boundaries so DST days are 23 or 25 hours.
        """
        return self.day_start_instant(day), self.day_start_instant(day + timedelta(days=1))


def as_utc(instant: datetime) -> datetime:
    """Normalize an aware datetime to naive UTC; naive values are taken as UTC"""
    if instant.tzinfo is None:
        return instant
    return instant.astimezone(timezone.utc).replace(tzinfo=None)
