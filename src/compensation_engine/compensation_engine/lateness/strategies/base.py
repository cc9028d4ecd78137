from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class LatenessDecision:
    minutes_late: int
    deduction_percent: Decimal
    tier_label: str


class LatenessStrategy(ABC):
    """Strategy Pattern: encapsulate how a lateness bucket is priced."""

    @abstractmethod
    def decide(self, minutes_late: int) -> LatenessDecision:
        raise NotImplementedError
