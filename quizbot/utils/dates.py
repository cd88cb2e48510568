# quizbot/utils/dates.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo


@dataclass(slots=True)
class Clock:
    """
    Single source of "now" for services. Tests swap in a clock with a
    fixed instant instead of patching datetime.
    """
    timezone: str = "UTC"

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def utcnow(self) -> datetime:
        # storage convention: naive UTC
        return self.now().astimezone(timezone.utc).replace(tzinfo=None)

    def today_utc(self) -> date:
        return self.now().astimezone(timezone.utc).date()

    def local_now(self) -> datetime:
        return self.now().astimezone(ZoneInfo(self.timezone))


def week_start_monday(d: date) -> date:
    # Monday = 0 ... Sunday = 6
    return d - timedelta(days=d.weekday())


def to_naive_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)
