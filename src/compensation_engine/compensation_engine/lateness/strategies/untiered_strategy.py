from __future__ import annotations

from ...common.money import ZERO
from .base import LatenessDecision, LatenessStrategy


class UntieredStrategy(LatenessStrategy):
    """Gap between tiers, or no tiers configured."""

    def decide(self, minutes_late: int) -> LatenessDecision:
        return LatenessDecision(minutes_late=minutes_late, deduction_percent=ZERO, tier_label="No Tier")
