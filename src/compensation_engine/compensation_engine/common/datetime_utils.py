from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta
from typing import Iterator, Optional
from zoneinfo import ZoneInfo

_TIME_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})(?::(\d{2}))?\s*([AaPp][Mm])?\s*$")


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def today_local() -> date:
    return now_local().date()


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every date in the inclusive range [start, end]."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def is_sunday(day: date) -> bool:
    return day.weekday() == 6


def parse_time_of_day(value: Optional[str]) -> Optional[time]:
    """Parse a scheduled slot into a time of day.

    Accepts "08:00", "8:00", "08:00:00", "4:30 PM" and ranges such as
    "08:00-09:00" (the start is used). Returns None for empty input and raises
    ValueError when the value cannot be read.
    """

    if value is None or not str(value).strip():
        return None

    text = str(value).strip()
    if "-" in text:
        text = text.split("-", 1)[0]

    match = _TIME_RE.match(text)
    if not match:
        raise ValueError(f"Invalid time slot: {value!r}")

    hours = int(match.group(1))
    minutes = int(match.group(2))
    seconds = int(match.group(3) or 0)
    period = (match.group(4) or "").upper()

    if period:
        if not 1 <= hours <= 12:
            raise ValueError(f"Invalid 12-hour time: {value!r}")
        if period == "PM" and hours != 12:
            hours += 12
        elif period == "AM" and hours == 12:
            hours = 0

    return time(hour=hours, minute=minutes, second=seconds)


def to_local_naive(value: datetime, tz: ZoneInfo) -> datetime:
    """Convert an aware timestamp to naive school-local time; naive input is kept as is."""
    if value.tzinfo is None:
        return value
    return value.astimezone(tz).replace(tzinfo=None)
