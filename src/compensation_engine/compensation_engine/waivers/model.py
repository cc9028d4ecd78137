from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Optional

from ..core.enums import DeductionType


@dataclass(frozen=True)
class Waiver:
    """Admin exemption from one deduction type for a set of teachers over a date range."""

    waiver_id: Optional[int]
    teacher_ids: frozenset[str]
    deduction_type: DeductionType
    start_date: date
    end_date: date
    reason: str
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None

    def covers(self, teacher_id: str, day: date, deduction_type: DeductionType) -> bool:
        return (
            self.deduction_type == deduction_type
            and teacher_id in self.teacher_ids
            and self.start_date <= day <= self.end_date
        )


class WaiverIndex:
    """Waivers for one teacher, loaded once per computation."""

    def __init__(self, teacher_id: str, waivers: Iterable[Waiver] = ()):
        self.teacher_id = teacher_id
        self._waivers = [w for w in waivers if teacher_id in w.teacher_ids]

    def __len__(self) -> int:
        return len(self._waivers)

    def is_waived(self, day: date, deduction_type: DeductionType) -> tuple[bool, Optional[str]]:
        for waiver in self._waivers:
            if waiver.covers(self.teacher_id, day, deduction_type):
                return True, waiver.reason
        return False, None
