# weekly_bot/utils/dates.py
from __future__ import annotations

from datetime import datetime, time, timedelta, timezone

# datetime.weekday() numbering: Monday = 0 ... Sunday = 6
MONDAY = 0
SUNDAY = 6

WEEK = timedelta(days=7)
# windows are inclusive, so a window ends one millisecond before the next starts
WINDOW_RESOLUTION = timedelta(milliseconds=1)

_WEEKDAY_NAMES = {
    "mon": 0,
    "tue": 1,
    "wed": 2,
    "thu": 3,
    "fri": 4,
    "sat": 5,
    "sun": 6,
}

_FULL_NAMES = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


def utc_now_naive() -> datetime:
    # store in DB as naive UTC (timezone=False columns)
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_weekday(raw: str) -> int:
    """
    "sun" / "Sunday" / "6" -> 6, "mon" / "monday" / "0" -> 0.
    """
    value = raw.strip().lower()
    if value.isdigit():
        n = int(value)
        if 0 <= n <= 6:
            return n
        raise ValueError(f"weekday out of range: {raw!r}")

    for name, n in _WEEKDAY_NAMES.items():
        if value in (name, _FULL_NAMES[n]):
            return n
    raise ValueError(f"unknown weekday: {raw!r}")


def week_start(at: datetime, week_starts_on: int = SUNDAY) -> datetime:
    """Midnight of the most recent week boundary at or before `at`."""
    days_since = (at.weekday() - week_starts_on) % 7
    return datetime.combine(at.date() - timedelta(days=days_since), time.min)


def week_window(start_of_first_week: datetime, offset: int) -> tuple[datetime, datetime]:
    """
    Inclusive window for the week `offset` weeks after `start_of_first_week`.
    The end is the last instant of the 7th day (23:59:59.999).
    """
    start = start_of_first_week + offset * WEEK
    end = start + WEEK - WINDOW_RESOLUTION
    return start, end
