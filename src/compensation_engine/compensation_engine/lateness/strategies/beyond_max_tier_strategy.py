from __future__ import annotations

from ...common.money import HUNDRED
from .base import LatenessDecision, LatenessStrategy


class BeyondMaxTierStrategy(LatenessStrategy):
    """Later than the last tier's end: the whole base deduction applies."""

    def decide(self, minutes_late: int) -> LatenessDecision:
        return LatenessDecision(minutes_late=minutes_late, deduction_percent=HUNDRED, tier_label="> Max Tier")
