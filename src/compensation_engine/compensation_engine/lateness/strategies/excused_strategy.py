from __future__ import annotations

from ...common.money import ZERO
from .base import LatenessDecision, LatenessStrategy


class ExcusedStrategy(LatenessStrategy):
    """Within the excused threshold: free."""

    def decide(self, minutes_late: int) -> LatenessDecision:
        return LatenessDecision(minutes_late=minutes_late, deduction_percent=ZERO, tier_label="Excused")
