from __future__ import annotations

import calendar
from datetime import date

from ...common.datetime_utils import iter_days
from ...policy.model import Policy
from .base import ProrationCalculator


class CalendarMonthProrationCalculator(ProrationCalculator):
    """Legacy rule: working days of the whole calendar month containing `start`."""

    def working_days(self, *, start: date, end: date, policy: Policy) -> int:
        last = calendar.monthrange(start.year, start.month)[1]
        first_day = start.replace(day=1)
        last_day = start.replace(day=last)
        return sum(1 for day in iter_days(first_day, last_day) if policy.counts_day(day))
