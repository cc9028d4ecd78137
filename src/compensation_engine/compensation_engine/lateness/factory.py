from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from ..policy.model import LatenessTier
from .strategies.base import LatenessStrategy
from .strategies.beyond_max_tier_strategy import BeyondMaxTierStrategy
from .strategies.excused_strategy import ExcusedStrategy
from .strategies.tier_strategy import TierStrategy
from .strategies.untiered_strategy import UntieredStrategy


@dataclass
class LatenessStrategyFactory:
    """Factory Pattern: choose the pricing strategy for a lateness amount."""

    def for_minutes(
        self, *, minutes_late: int, tiers: Sequence[LatenessTier], excused_threshold: int
    ) -> LatenessStrategy:
        if minutes_late <= excused_threshold:
            return ExcusedStrategy()

        ordered = sorted(tiers, key=lambda t: (t.start_minute, t.end_minute))
        for position, tier in enumerate(ordered, start=1):
            if tier.contains(minutes_late):
                return TierStrategy(tier, position)

        if ordered and minutes_late > max(t.end_minute for t in ordered):
            return BeyondMaxTierStrategy()
        return UntieredStrategy()
