"""Weekday-pattern ("day package") matching.

Missing or unreadable patterns are treated as "every day" so that classes are
never silently dropped from lateness/absence evaluation; such patterns are
reported through `DayPattern.recognized`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from typing import Optional

ALL_WEEKDAYS = frozenset(range(7))

_ALL_DAYS_TOKENS = {"alldays", "all", "everyday", "daily"}

_NAMED_PACKAGES = {
    "MWF": frozenset({0, 2, 4}),
    "TTS": frozenset({1, 3, 5}),
    "TTH": frozenset({1, 3, 5}),
}

_DAY_NAMES = {
    "MON": 0, "MONDAY": 0,
    "TUE": 1, "TUES": 1, "TUESDAY": 1,
    "WED": 2, "WEDNESDAY": 2,
    "THU": 3, "THUR": 3, "THURS": 3, "THURSDAY": 3,
    "FRI": 4, "FRIDAY": 4,
    "SAT": 5, "SATURDAY": 5,
    "SUN": 6, "SUNDAY": 6,
}

_SEPARATORS = re.compile(r"(?:\s*[,/;&+|]\s*|\s+and\s+|\s+)", re.IGNORECASE)


@dataclass(frozen=True)
class DayPattern:
    weekdays: frozenset[int]
    recognized: bool
    raw: Optional[str] = None

    def matches(self, day: date) -> bool:
        return day.weekday() in self.weekdays


def _expand_range(first: int, last: int) -> set[int]:
    days = {first}
    current = first
    while current != last:
        current = (current + 1) % 7
        days.add(current)
    return days


def _token_days(token: str) -> Optional[set[int]]:
    upper = token.upper()
    if upper in _NAMED_PACKAGES:
        return set(_NAMED_PACKAGES[upper])
    if upper in _DAY_NAMES:
        return {_DAY_NAMES[upper]}
    if "-" in upper:
        first, _, last = upper.partition("-")
        if first in _DAY_NAMES and last in _DAY_NAMES:
            return _expand_range(_DAY_NAMES[first], _DAY_NAMES[last])
    return None


def parse_day_pattern(value: Optional[str]) -> DayPattern:
    if value is None or not value.strip():
        return DayPattern(weekdays=ALL_WEEKDAYS, recognized=False, raw=value)

    text = value.strip()
    if re.sub(r"[\s_-]+", "", text.lower()) in _ALL_DAYS_TOKENS:
        return DayPattern(weekdays=ALL_WEEKDAYS, recognized=True, raw=value)

    weekdays: set[int] = set()
    for token in _SEPARATORS.split(text):
        token = token.strip().strip(".")
        if not token:
            continue
        days = _token_days(token)
        if days is None:
            return DayPattern(weekdays=ALL_WEEKDAYS, recognized=False, raw=value)
        weekdays |= days

    if not weekdays:
        return DayPattern(weekdays=ALL_WEEKDAYS, recognized=False, raw=value)
    return DayPattern(weekdays=frozenset(weekdays), recognized=True, raw=value)
