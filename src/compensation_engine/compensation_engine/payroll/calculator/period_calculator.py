from __future__ import annotations

from datetime import date

from ...common.datetime_utils import iter_days
from ...policy.model import Policy
from .base import ProrationCalculator


class PeriodProrationCalculator(ProrationCalculator):
    """Working days are the counted days inside the requested period."""

    def working_days(self, *, start: date, end: date, policy: Policy) -> int:
        return sum(1 for day in iter_days(start, end) if policy.counts_day(day))
