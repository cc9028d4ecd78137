from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from ..common.money import ZERO
from ..core.enums import AbsenceReason


@dataclass(frozen=True)
class AbsenceOutcome:
    teacher_id: str
    student_id: int
    day: date
    is_absent: bool
    reason_code: AbsenceReason
    deduction_amount: Decimal = ZERO
    student_name: str = ""
    package: Optional[str] = None
    base_defaulted: bool = False
    waiver_reason: Optional[str] = None
