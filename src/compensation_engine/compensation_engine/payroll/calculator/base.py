from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal

from ...common.money import ZERO
from ...policy.model import Policy


class ProrationCalculator(ABC):
    """Calculator interface (Strategy Pattern for the daily-rate denominator)."""

    @abstractmethod
    def working_days(self, *, start: date, end: date, policy: Policy) -> int:
        raise NotImplementedError

    def daily_rate(self, monthly_rate: Decimal, working_days: int) -> Decimal:
        """Unrounded per-day pay; 0 when there are no working days."""
        if working_days <= 0:
            return ZERO
        return monthly_rate / Decimal(working_days)
