# quizbot/utils/leaderboard_window.py
from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime, time

from quizbot.utils.dates import Clock, to_naive_utc, week_start_monday


class LeaderboardPeriod(str, enum.Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    ALL_TIME = "all_time"


@dataclass(frozen=True, slots=True)
class LeaderboardWindow:
    period: LeaderboardPeriod
    start_utc: datetime | None  # naive UTC, None = unbounded


def resolve_leaderboard_window(period: LeaderboardPeriod, clock: Clock) -> LeaderboardWindow:
    """
    Window starts are local midnights in the clock's timezone:
    - DAILY: today 00:00
    - WEEKLY: most recent Monday 00:00
    - MONTHLY: 1st of the current month 00:00
    - ALL_TIME: no lower bound
    """
    if period == LeaderboardPeriod.ALL_TIME:
        return LeaderboardWindow(period=period, start_utc=None)

    local_now = clock.local_now()
    today = local_now.date()

    if period == LeaderboardPeriod.DAILY:
        start_day = today
    elif period == LeaderboardPeriod.WEEKLY:
        start_day = week_start_monday(today)
    else:
        start_day = today.replace(day=1)

    local_midnight = datetime.combine(start_day, time.min, tzinfo=local_now.tzinfo)
    return LeaderboardWindow(period=period, start_utc=to_naive_utc(local_midnight))


def parse_period(raw: str | None) -> LeaderboardPeriod:
    """
    Accepts "daily", "weekly", "monthly", "all", "all_time" (case-insensitive).
    Unknown or empty -> ALL_TIME.
    """
    value = (raw or "").strip().lower().replace("-", "_")
    if value in {"all", "alltime"}:
        value = "all_time"
    try:
        return LeaderboardPeriod(value)
    except ValueError:
        return LeaderboardPeriod.ALL_TIME
