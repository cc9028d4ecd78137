from __future__ import annotations

from ...policy.model import LatenessTier
from .base import LatenessDecision, LatenessStrategy


class TierStrategy(LatenessStrategy):
    """Inside a configured tier; `position` is 1-based over tiers sorted by start minute."""

    def __init__(self, tier: LatenessTier, position: int):
        self._tier = tier
        self._position = position

    def decide(self, minutes_late: int) -> LatenessDecision:
        return LatenessDecision(
            minutes_late=minutes_late,
            deduction_percent=self._tier.deduction_percent,
            tier_label=f"Tier {self._position}",
        )
