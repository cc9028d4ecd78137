from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from ..payroll.model import CompensationBreakdown


@dataclass(frozen=True)
class CacheKey:
    teacher_id: str
    period_start: date
    period_end: date

    def as_string(self) -> str:
        return f"{self.teacher_id}:{self.period_start.isoformat()}:{self.period_end.isoformat()}"


@dataclass(frozen=True)
class CacheEntry:
    """An immutable cached breakdown, tagged with the policy version and the day it was computed."""

    breakdown: CompensationBreakdown
    policy_version: str
    computed_on: date
