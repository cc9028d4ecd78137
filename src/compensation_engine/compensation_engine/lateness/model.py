from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class LatenessOutcome:
    teacher_id: str
    student_id: int
    student_name: str
    day: date
    package: Optional[str]
    scheduled_at: datetime
    actual_start: datetime
    minutes_late: int
    tier_label: str
    deduction_percent: Decimal
    base_amount: Decimal
    deduction_amount: Decimal
    base_defaulted: bool = False
    waived: bool = False
    waiver_reason: Optional[str] = None
