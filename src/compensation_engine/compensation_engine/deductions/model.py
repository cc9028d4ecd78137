from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import DeductionType, ReviewState


@dataclass(frozen=True)
class DeductionRecord:
    """A persisted deduction outcome. Waiving zeroes `amount` and keeps the audit trail."""

    record_id: Optional[int]
    teacher_id: str
    deduction_type: DeductionType
    record_date: date
    student_id: Optional[int]
    amount: Decimal
    reason_code: str = ""
    affected_slots: int = 1
    permitted: bool = False
    review_state: ReviewState = ReviewState.PENDING
    original_amount: Optional[Decimal] = None
    waiver_reason: Optional[str] = None
    adjusted_at: Optional[datetime] = None
    adjusted_by: Optional[str] = None
    scheduled_at: Optional[datetime] = None
    actual_start: Optional[datetime] = None
    minutes_late: Optional[int] = None
    tier_label: Optional[str] = None
